"""
Read-only queries over a saved catalog artifact.

Usage:
    from pattern_catalog.query import CatalogReader

    reader = CatalogReader(Path("output/catalog.json"))
    pattern = reader.get_pattern("pattern-003")
    matches = reader.search_patterns(title_contains="state")
    noisy = reader.examples_with_warnings()
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from .errors import CatalogNotFoundError
from .models import Catalog
from .schema import CatalogModel, ExampleModel, PatternModel


class CatalogReader:
    """Loads a catalog JSON artifact once and answers lookups from it."""

    def __init__(self, catalog_path: Path):
        self.catalog_path = Path(catalog_path)
        self._model: Optional[CatalogModel] = None

    @property
    def model(self) -> CatalogModel:
        if self._model is None:
            if not self.catalog_path.exists():
                raise CatalogNotFoundError(
                    f"Catalog not found at {self.catalog_path}. Build catalog first."
                )
            self._model = CatalogModel.model_validate_json(
                self.catalog_path.read_text(encoding='utf-8')
            )
        return self._model

    def to_catalog(self) -> Catalog:
        """Rebuild the in-memory Catalog from the artifact."""
        return self.model.to_catalog()

    def list_patterns(self) -> List[Dict]:
        """Short summary of every pattern in catalog order."""
        return [
            {
                "pattern_id": p.pattern_id,
                "category_id": p.category_id,
                "title": p.title,
                "examples": len(p.examples),
                "percentage": p.occurrence_stat.percentage if p.occurrence_stat else None,
            }
            for p in self.model.patterns
        ]

    def get_pattern(self, pattern_id: str) -> PatternModel:
        """Get pattern by id.

        Raises:
            KeyError: If pattern not found
        """
        for pattern in self.model.patterns:
            if pattern.pattern_id == pattern_id:
                return pattern
        raise KeyError(f"Pattern '{pattern_id}' not found in catalog")

    def search_patterns(self, title_contains: Optional[str] = None, **filters) -> List[PatternModel]:
        """Search patterns by exact field filters and a title substring.

        Example:
            >>> reader.search_patterns(category_id=3)
            >>> reader.search_patterns(title_contains="state")
        """
        results = []
        needle = title_contains.lower() if title_contains else None
        for pattern in self.model.patterns:
            if needle and needle not in pattern.title.lower():
                continue
            if all(getattr(pattern, k, None) == v for k, v in filters.items()):
                results.append(pattern)
        return results

    def examples_with_warnings(self) -> List[ExampleModel]:
        """Examples whose hand-written diff disagrees with their snippets."""
        return [
            example
            for pattern in self.model.patterns
            for example in pattern.examples
            if example.warnings
        ]
