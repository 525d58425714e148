"""
Data model for the pattern catalog.

A Catalog owns its Documents, a Document owns its Examples, and an Example
owns its CodeBlocks and DiffBlock. Nothing is shared between owners.

Identifiers are derived from the category number only, so renaming a
pattern never changes its id:

    pattern-007
    pattern-007/example-2
    pattern-007/example-2/avoid
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple


ROLE_AVOID = "avoid"
ROLE_GOOD = "good"
ROLE_DIFF = "diff"
ROLES = (ROLE_AVOID, ROLE_GOOD, ROLE_DIFF)


def pattern_id_for(category_id: int) -> str:
    """Stable catalog identifier for a category number."""
    return f"pattern-{category_id:03d}"


def example_id_for(category_id: int, index: int) -> str:
    return f"{pattern_id_for(category_id)}/example-{index}"


def block_id_for(category_id: int, index: int, role: str) -> str:
    return f"{example_id_for(category_id, index)}/{role}"


# ============================================================================
# Code fence annotations
# ============================================================================


@dataclass(frozen=True)
class LineRangeHighlight:
    """Inclusive range of highlighted lines, e.g. `{4-6}`."""
    start: int
    end: int

    def lines(self) -> range:
        return range(self.start, self.end + 1)


@dataclass(frozen=True)
class TokenHighlight:
    """Emphasized token, e.g. `/useState/` or `/data/2`.

    occurrence_index is 1-based; None means every occurrence.
    """
    token: str
    occurrence_index: Optional[int] = None


@dataclass(frozen=True)
class FenceMeta:
    """Parsed annotation attached to a fenced code block."""
    language: str = ""
    filename: Optional[str] = None
    show_line_numbers: bool = False
    line_ranges: Tuple[LineRangeHighlight, ...] = ()
    token_highlights: Tuple[TokenHighlight, ...] = ()
    flags: Tuple[str, ...] = ()
    summary: Optional["DiffSummary"] = None


# ============================================================================
# Code and diff blocks
# ============================================================================


@dataclass
class CodeBlock:
    """A fenced code block with its resolved highlights."""
    language: str
    source_lines: List[str]
    filename: Optional[str] = None
    highlighted_line_numbers: FrozenSet[int] = frozenset()
    highlighted_tokens: FrozenSet[str] = frozenset()
    block_id: str = ""
    show_line_numbers: bool = False
    line_ranges: Tuple[LineRangeHighlight, ...] = ()
    token_highlights: Tuple[TokenHighlight, ...] = ()
    flags: Tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return "\n".join(self.source_lines)

    @property
    def line_count(self) -> int:
        return len(self.source_lines)


@dataclass(frozen=True)
class DiffSummary:
    """Declared `+N/-M` counts of a diff."""
    added: int
    removed: int

    def __str__(self) -> str:
        return f"+{self.added}/-{self.removed}"


@dataclass
class DiffBlock:
    """Line-level delta between an avoid and a good snippet.

    `lines` keeps the unified-diff view in order ('+', '-' or ' ' prefixed);
    the three sequences below are its projections.
    """
    added_lines: List[str] = field(default_factory=list)
    removed_lines: List[str] = field(default_factory=list)
    unchanged_context: List[str] = field(default_factory=list)
    summary: Optional[DiffSummary] = None
    lines: List[str] = field(default_factory=list)

    def summary_matches(self) -> bool:
        """True when there is no summary or its counts equal the line counts."""
        if self.summary is None:
            return True
        return (
            self.summary.added == len(self.added_lines)
            and self.summary.removed == len(self.removed_lines)
        )


@dataclass(frozen=True)
class ReconciliationWarning:
    """Non-fatal mismatch between a hand-written diff and the snippet pair."""
    kind: str
    line: str
    message: str
    example_id: str = ""


# ============================================================================
# Documents
# ============================================================================


@dataclass
class Example:
    """One avoid/good illustration inside a Document."""
    index: int
    label: str
    avoid_snippet: Optional[CodeBlock] = None
    good_snippet: Optional[CodeBlock] = None
    diff: Optional[DiffBlock] = None
    rationale_avoid: str = ""
    rationale_good: str = ""
    warnings: List[ReconciliationWarning] = field(default_factory=list)
    diff_source: Optional[str] = None  # "literal", "computed" or None
    category_id: int = 0

    @property
    def example_id(self) -> str:
        return example_id_for(self.category_id, self.index)

    def code_blocks(self) -> List[CodeBlock]:
        return [b for b in (self.avoid_snippet, self.good_snippet) if b is not None]


@dataclass(frozen=True)
class OccurrenceStat:
    """How often a pattern was observed. percentage is always derived."""
    occurrences: int
    total_opportunities: Optional[int] = None

    @property
    def percentage(self) -> Optional[float]:
        if not self.total_opportunities or not self.is_consistent:
            return None
        return self.occurrences / self.total_opportunities

    @property
    def is_consistent(self) -> bool:
        if self.occurrences < 0:
            return False
        if self.total_opportunities is None:
            return True
        return 0 <= self.occurrences <= self.total_opportunities


@dataclass
class Document:
    """One catalog entry parsed from a content file."""
    title: str
    category_id: int
    examples: List[Example] = field(default_factory=list)
    introduction: Optional[str] = None
    references: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    occurrence_stat: Optional[OccurrenceStat] = None
    source_path: Optional[str] = None

    @property
    def pattern_id(self) -> str:
        return pattern_id_for(self.category_id)


@dataclass(frozen=True)
class DocumentFailure:
    """A source document that was excluded from the catalog."""
    source: str
    error_code: str
    message: str
    entity_id: Optional[str] = None


# ============================================================================
# Catalog
# ============================================================================


@dataclass
class Catalog:
    """Ordered, read-only collection of Documents keyed by pattern id."""
    documents: List[Document] = field(default_factory=list)
    failures: List[DocumentFailure] = field(default_factory=list)

    def __iter__(self) -> Iterator[Document]:
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def pattern_ids(self) -> List[str]:
        return [doc.pattern_id for doc in self.documents]

    def get(self, pattern_id: str) -> Document:
        """Get document by pattern id.

        Raises:
            KeyError: If no document has that id
        """
        for doc in self.documents:
            if doc.pattern_id == pattern_id:
                return doc
        raise KeyError(f"Pattern '{pattern_id}' not found in catalog")

    def by_category(self, category_id: int) -> Optional[Document]:
        for doc in self.documents:
            if doc.category_id == category_id:
                return doc
        return None

    def search(self, **filters) -> List[Document]:
        """Documents whose attributes equal all given filters.

        Example:
            >>> catalog.search(title="Duplicate State")
        """
        return [
            doc for doc in self.documents
            if all(getattr(doc, k, None) == v for k, v in filters.items())
        ]

    def examples(self) -> Iterator[Tuple[Document, Example]]:
        for doc in self.documents:
            for example in doc.examples:
                yield doc, example

    def statistics(self) -> Dict[str, int]:
        return {
            "patterns": len(self.documents),
            "examples": sum(len(doc.examples) for doc in self.documents),
            "reconciliation_warnings": sum(len(ex.warnings) for _, ex in self.examples()),
            "with_occurrence_stats": sum(1 for doc in self.documents if doc.occurrence_stat),
            "failures": len(self.failures),
        }
