"""
Pattern catalog for anti-pattern documentation.

This module provides functionality for:
- Parsing numbered anti-pattern articles (Markdown/MDX)
- Extracting avoid/good code snippets and their fence annotations
- Reconciling hand-written diff views with the snippet pairs
- Building, validating and querying a file-based catalog

File structure:
    output/
        catalog.json         - Patterns, examples, code blocks and diffs
        catalog.report.json  - Validation findings

Document format (in markdown):
    # 3. Duplicate State

    ## Examples

    ### 1. In Pages
    🛑 Avoid: ...
    ```jsx {2} /useState/
    ```
    ✅ Good: ...
    ```jsx
    ```

Usage:
    from pattern_catalog import run_pipeline, CatalogBuilder

    builder = CatalogBuilder(Path("output/catalog.json"))
    result = run_pipeline(Path("docs"), builder=builder)
    stats = builder.save(result.catalog, result.report)

    pattern = result.catalog.get("pattern-003")
"""

from .errors import (
    PatternCatalogError,
    StructuralError,
    MalformedDocumentError,
    EmptyCatalogEntryError,
    DuplicateCategoryError,
    MalformedAnnotationError,
    UnresolvableHighlightError,
    NoContentFoundError,
    CatalogNotFoundError,
)
from .models import (
    Catalog,
    CodeBlock,
    DiffBlock,
    DiffSummary,
    Document,
    DocumentFailure,
    Example,
    FenceMeta,
    LineRangeHighlight,
    OccurrenceStat,
    ReconciliationWarning,
    TokenHighlight,
)
from .fence_meta import parse_fence_meta, format_fence_meta
from .code_blocks import extract_code_block, extract_example_blocks, resolve_highlights
from .diff_reconciler import compute_diff, parse_literal_diff, reconcile, reconcile_document
from .occurrence import parse_occurrence
from .document_parser import parse_document
from .document_writer import render_document
from .builder import CatalogBuilder
from .validator import Severity, ValidationReport, validate
from .config import PipelineConfig, load_config
from .pipeline import run_pipeline
from .query import CatalogReader

__all__ = [
    "PatternCatalogError",
    "StructuralError",
    "MalformedDocumentError",
    "EmptyCatalogEntryError",
    "DuplicateCategoryError",
    "MalformedAnnotationError",
    "UnresolvableHighlightError",
    "NoContentFoundError",
    "CatalogNotFoundError",
    "Catalog",
    "CodeBlock",
    "DiffBlock",
    "DiffSummary",
    "Document",
    "DocumentFailure",
    "Example",
    "FenceMeta",
    "LineRangeHighlight",
    "OccurrenceStat",
    "ReconciliationWarning",
    "TokenHighlight",
    "parse_fence_meta",
    "format_fence_meta",
    "extract_code_block",
    "extract_example_blocks",
    "resolve_highlights",
    "compute_diff",
    "parse_literal_diff",
    "reconcile",
    "reconcile_document",
    "parse_occurrence",
    "parse_document",
    "render_document",
    "CatalogBuilder",
    "Severity",
    "ValidationReport",
    "validate",
    "PipelineConfig",
    "load_config",
    "run_pipeline",
    "CatalogReader",
]

__version__ = "1.0.0"
