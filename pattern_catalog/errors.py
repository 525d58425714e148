"""
Exceptions raised by the pattern catalog pipeline.

Structural errors abort ingestion of a single document only; the
orchestrator records them as failures and keeps going. NoContentFoundError
is the one condition that stops a whole run.
"""

from __future__ import annotations

from typing import Optional


class PatternCatalogError(Exception):
    """Base exception for pattern catalog errors."""

    error_code = "pattern_catalog_error"

    def __init__(self, message: str, entity_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.entity_id = entity_id

    def __reduce__(self):
        return (self.__class__, (self.message, self.entity_id))


class StructuralError(PatternCatalogError):
    """A document cannot be turned into a catalog entry."""

    error_code = "structural_error"


class MalformedDocumentError(StructuralError):
    """Document does not start with a `# <n>. <title>` heading or is otherwise unreadable."""

    error_code = "malformed_document"


class EmptyCatalogEntryError(StructuralError):
    """Document parsed but contains no examples."""

    error_code = "empty_catalog_entry"


class DuplicateCategoryError(StructuralError):
    """Two documents declare the same category number."""

    error_code = "duplicate_category"


class MalformedAnnotationError(StructuralError):
    """Code fence annotation cannot be parsed."""

    error_code = "malformed_annotation"


class UnresolvableHighlightError(StructuralError):
    """Highlighted line or token does not exist in its code block."""

    error_code = "unresolvable_highlight"


class NoContentFoundError(PatternCatalogError):
    """No readable source documents were found."""

    error_code = "no_content_found"


class CatalogNotFoundError(PatternCatalogError):
    """Catalog artifact does not exist. Build the catalog first."""

    error_code = "catalog_not_found"
