"""
End-to-end pipeline: source directory -> validated catalog.

1. Read every source file up front (relative path order)
2. Parse, extract and reconcile each document, optionally in parallel
3. Collect all results, then build the catalog in one step
4. Validate the catalog

Documents that fail to parse are recorded and left out; the run only stops
when there is nothing readable at all (NoContentFoundError).
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from .builder import CatalogBuilder
from .config import PipelineConfig
from .diff_reconciler import reconcile_document
from .document_parser import parse_document
from .errors import NoContentFoundError, PatternCatalogError
from .models import Catalog, Document, DocumentFailure
from .validator import ValidationReport, validate

logger = logging.getLogger(__name__)

UNREADABLE_SOURCE = "unreadable_source"


@dataclass(frozen=True)
class SourceDocument:
    path: str  # relative to the source directory, POSIX separators
    text: str


@dataclass
class ProcessedSource:
    """Outcome for one source; exactly one of document/failure is set."""
    source: str
    document: Optional[Document] = None
    failure: Optional[DocumentFailure] = None


@dataclass
class PipelineResult:
    catalog: Catalog
    report: ValidationReport
    sources_read: int = 0
    failures: List[DocumentFailure] = field(default_factory=list)


def discover_sources(source_dir: Path, extensions: Tuple[str, ...]) -> List[Path]:
    """Source files under source_dir, sorted by relative path."""
    source_dir = Path(source_dir)
    if not source_dir.is_dir():
        return []
    wanted = {ext.lower() for ext in extensions}
    files = [p for p in source_dir.rglob("*") if p.is_file() and p.suffix.lower() in wanted]
    return sorted(files, key=lambda p: p.relative_to(source_dir).as_posix())


def load_sources(
    source_dir: Path,
    extensions: Tuple[str, ...],
) -> Tuple[List[SourceDocument], List[DocumentFailure]]:
    """Read all source files.

    Returns:
        (readable sources, failures for unreadable files)

    Raises:
        NoContentFoundError: If no file could be read
    """
    source_dir = Path(source_dir)
    sources: List[SourceDocument] = []
    failures: List[DocumentFailure] = []

    for path in discover_sources(source_dir, extensions):
        relative = path.relative_to(source_dir).as_posix()
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Cannot read {relative}: {exc}")
            failures.append(DocumentFailure(relative, UNREADABLE_SOURCE, str(exc)))
            continue
        sources.append(SourceDocument(relative, text))

    if not sources:
        raise NoContentFoundError(
            f"No readable {'/'.join(extensions)} documents found in {source_dir}"
        )

    logger.info(f"Read {len(sources)} source document(s) from {source_dir}")
    return sources, failures


def process_source(source: SourceDocument) -> ProcessedSource:
    """Parse and reconcile one document. Never raises catalog errors."""
    try:
        document = reconcile_document(parse_document(source.text, source.path))
    except PatternCatalogError as exc:
        logger.warning(f"✗ {source.path}: {exc.message}")
        return ProcessedSource(
            source=source.path,
            failure=DocumentFailure(source.path, exc.error_code, exc.message, exc.entity_id),
        )
    logger.debug(f"✓ {source.path}: {document.pattern_id} with {len(document.examples)} example(s)")
    return ProcessedSource(source=source.path, document=document)


def process_sources(sources: List[SourceDocument], config: PipelineConfig) -> List[ProcessedSource]:
    """Process every source; results keep the input order."""
    if config.workers <= 1 or len(sources) <= 1:
        return [process_source(source) for source in sources]

    executor_class = ProcessPoolExecutor if config.use_processes else ThreadPoolExecutor
    with executor_class(max_workers=config.workers) as pool:
        return list(pool.map(process_source, sources))


def run_pipeline(
    source_dir: Path,
    config: Optional[PipelineConfig] = None,
    builder: Optional[CatalogBuilder] = None,
) -> PipelineResult:
    """Build and validate a catalog from a directory of documents.

    Args:
        source_dir: Directory searched recursively for content documents
        config: Pipeline configuration (default: PipelineConfig())
        builder: Builder to use; nothing is written here either way

    Raises:
        NoContentFoundError: If the directory holds no readable documents
    """
    config = config or PipelineConfig()
    builder = builder or CatalogBuilder()

    sources, failures = load_sources(source_dir, config.extensions)
    processed = process_sources(sources, config)

    documents = [p.document for p in processed if p.document is not None]
    failures.extend(p.failure for p in processed if p.failure is not None)

    catalog = builder.build(documents, failures)
    report = validate(catalog)
    return PipelineResult(
        catalog=catalog,
        report=report,
        sources_read=len(sources),
        failures=list(catalog.failures),
    )
