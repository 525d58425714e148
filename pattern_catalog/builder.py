"""
Catalog builder for the pattern catalog.

Aggregates parsed documents into one ordered Catalog:
- Documents are taken in a fixed order (source path, then category)
- The first document per category number wins; later ones are failures
- Occurrence statistics are parsed from each document's closing notes
- Entries are sorted by category number

and writes the artifacts:
- <output>.json          catalog with every pattern, example and diff
- <output>.report.json   validation findings
"""

from __future__ import annotations

import copy
import logging
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .errors import DuplicateCategoryError
from .models import Catalog, Document, DocumentFailure
from .occurrence import parse_occurrence
from .schema import CatalogModel, ReportModel
from .validator import ValidationReport

logger = logging.getLogger(__name__)


def source_order(doc: Document):
    """Sort key used wherever processing order matters."""
    return (doc.source_path or "", doc.category_id, doc.title)


def default_report_path(catalog_path: Path) -> Path:
    return catalog_path.with_name(f"{catalog_path.stem}.report.json")


class CatalogBuilder:
    """Builds the catalog and writes its artifacts."""

    def __init__(self, catalog_path: Optional[Path] = None, report_path: Optional[Path] = None):
        """Initialize catalog builder.

        Args:
            catalog_path: Catalog JSON artifact (e.g., output/catalog.json);
                only needed for save()
            report_path: Report JSON artifact (default: next to the catalog)
        """
        self.catalog_path = Path(catalog_path) if catalog_path else None
        self.report_path = Path(report_path) if report_path else None
        if self.report_path is None and self.catalog_path is not None:
            self.report_path = default_report_path(self.catalog_path)

    def build(
        self,
        documents: Iterable[Document],
        failures: Optional[List[DocumentFailure]] = None,
        strict: bool = False,
    ) -> Catalog:
        """Build an ordered catalog from parsed documents.

        Args:
            documents: Parsed (and reconciled) documents
            failures: Failures recorded upstream, carried into the catalog
            strict: Raise on a duplicate category instead of recording it

        Returns:
            Catalog sorted by category number

        Raises:
            DuplicateCategoryError: Only when strict is True

        Example:
            >>> catalog = CatalogBuilder(Path("output/catalog.json")).build(docs)
            >>> catalog.pattern_ids
            ['pattern-001', 'pattern-002']
        """
        accepted: Dict[int, Document] = {}
        recorded = list(failures or [])

        for doc in sorted(documents, key=source_order):
            if doc.category_id in accepted:
                first = accepted[doc.category_id]
                error = DuplicateCategoryError(
                    f"Category {doc.category_id} is already used by '{first.title}'"
                    f" ({first.source_path or 'unknown source'})",
                    doc.pattern_id,
                )
                if strict:
                    raise error
                logger.warning(f"Skipping {doc.source_path or doc.title}: {error.message}")
                recorded.append(DocumentFailure(
                    source=doc.source_path or doc.title,
                    error_code=error.error_code,
                    message=error.message,
                    entity_id=doc.pattern_id,
                ))
                continue

            # The catalog owns its documents
            entry = copy.deepcopy(doc)
            if entry.notes:
                entry.occurrence_stat = parse_occurrence(entry.notes, entry.pattern_id)
            accepted[doc.category_id] = entry

        catalog = Catalog(
            documents=sorted(accepted.values(), key=lambda d: d.category_id),
            failures=sorted(recorded, key=lambda f: (f.source, f.error_code)),
        )
        logger.info(f"Built catalog with {len(catalog)} pattern(s), {len(catalog.failures)} failure(s)")
        return catalog

    def save(self, catalog: Catalog, report: Optional[ValidationReport] = None) -> Dict:
        """Write the catalog (and report) artifacts.

        Returns:
            Dictionary with build statistics

        Raises:
            ValueError: If the builder has no catalog path
        """
        if self.catalog_path is None:
            raise ValueError("CatalogBuilder needs a catalog_path to save artifacts")

        self.catalog_path.parent.mkdir(parents=True, exist_ok=True)
        self.catalog_path.write_text(
            CatalogModel.from_catalog(catalog).model_dump_json(indent=2),
            encoding='utf-8'
        )

        if report is not None:
            self.report_path.parent.mkdir(parents=True, exist_ok=True)
            self.report_path.write_text(
                ReportModel.from_report(report).model_dump_json(indent=2),
                encoding='utf-8'
            )

        stats = {
            "patterns_count": len(catalog),
            "catalog_file": str(self.catalog_path),
            "report_file": str(self.report_path) if report is not None else None,
            "timestamp": datetime.now().isoformat(),
            "by_language": self._count_languages(catalog),
            **catalog.statistics(),
        }
        return stats

    def _count_languages(self, catalog: Catalog) -> Dict[str, int]:
        """Count code blocks by language tag."""
        counts = Counter(
            block.language or "plain"
            for _, example in catalog.examples()
            for block in example.code_blocks()
        )
        return dict(sorted(counts.items()))
