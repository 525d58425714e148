"""
Serialized form of the catalog and the validation report.

The pipeline works on plain dataclasses (models.py); these pydantic models
define the JSON artifacts written by the builder and read back by
query.CatalogReader.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .models import (
    Catalog,
    CodeBlock,
    DiffBlock,
    DiffSummary,
    Document,
    DocumentFailure,
    Example,
    LineRangeHighlight,
    OccurrenceStat,
    ReconciliationWarning,
    TokenHighlight,
)
from .validator import ValidationReport

SCHEMA_VERSION = "1.0"


class LineRangeModel(BaseModel):
    start: int = Field(..., ge=1)
    end: int = Field(..., ge=1)


class TokenHighlightModel(BaseModel):
    token: str
    occurrence_index: Optional[int] = Field(None, ge=1)


class CodeBlockModel(BaseModel):
    block_id: str
    language: str = ""
    filename: Optional[str] = None
    show_line_numbers: bool = False
    source_lines: List[str] = Field(default_factory=list)
    highlighted_line_numbers: List[int] = Field(default_factory=list)
    highlighted_tokens: List[str] = Field(default_factory=list)
    line_ranges: List[LineRangeModel] = Field(default_factory=list)
    token_highlights: List[TokenHighlightModel] = Field(default_factory=list)
    flags: List[str] = Field(default_factory=list)

    @classmethod
    def from_block(cls, block: CodeBlock) -> "CodeBlockModel":
        return cls(
            block_id=block.block_id,
            language=block.language,
            filename=block.filename,
            show_line_numbers=block.show_line_numbers,
            source_lines=list(block.source_lines),
            highlighted_line_numbers=sorted(block.highlighted_line_numbers),
            highlighted_tokens=sorted(block.highlighted_tokens),
            line_ranges=[LineRangeModel(start=r.start, end=r.end) for r in block.line_ranges],
            token_highlights=[
                TokenHighlightModel(token=h.token, occurrence_index=h.occurrence_index)
                for h in block.token_highlights
            ],
            flags=list(block.flags),
        )

    def to_block(self) -> CodeBlock:
        return CodeBlock(
            language=self.language,
            source_lines=list(self.source_lines),
            filename=self.filename,
            highlighted_line_numbers=frozenset(self.highlighted_line_numbers),
            highlighted_tokens=frozenset(self.highlighted_tokens),
            block_id=self.block_id,
            show_line_numbers=self.show_line_numbers,
            line_ranges=tuple(LineRangeHighlight(r.start, r.end) for r in self.line_ranges),
            token_highlights=tuple(
                TokenHighlight(h.token, h.occurrence_index) for h in self.token_highlights
            ),
            flags=tuple(self.flags),
        )


class DiffSummaryModel(BaseModel):
    added: int = Field(..., ge=0)
    removed: int = Field(..., ge=0)


class DiffBlockModel(BaseModel):
    added_lines: List[str] = Field(default_factory=list)
    removed_lines: List[str] = Field(default_factory=list)
    unchanged_context: List[str] = Field(default_factory=list)
    summary: Optional[DiffSummaryModel] = None
    lines: List[str] = Field(default_factory=list)

    @classmethod
    def from_diff(cls, diff: DiffBlock) -> "DiffBlockModel":
        summary = None
        if diff.summary is not None:
            summary = DiffSummaryModel(added=diff.summary.added, removed=diff.summary.removed)
        return cls(
            added_lines=list(diff.added_lines),
            removed_lines=list(diff.removed_lines),
            unchanged_context=list(diff.unchanged_context),
            summary=summary,
            lines=list(diff.lines),
        )

    def to_diff(self) -> DiffBlock:
        summary = DiffSummary(self.summary.added, self.summary.removed) if self.summary else None
        return DiffBlock(
            added_lines=list(self.added_lines),
            removed_lines=list(self.removed_lines),
            unchanged_context=list(self.unchanged_context),
            summary=summary,
            lines=list(self.lines),
        )


class WarningModel(BaseModel):
    kind: str
    line: str
    message: str
    example_id: str = ""


class ExampleModel(BaseModel):
    example_id: str
    index: int = Field(..., ge=1)
    label: str = ""
    avoid_snippet: Optional[CodeBlockModel] = None
    good_snippet: Optional[CodeBlockModel] = None
    diff: Optional[DiffBlockModel] = None
    diff_source: Optional[str] = None
    rationale_avoid: str = ""
    rationale_good: str = ""
    warnings: List[WarningModel] = Field(default_factory=list)

    @classmethod
    def from_example(cls, example: Example) -> "ExampleModel":
        return cls(
            example_id=example.example_id,
            index=example.index,
            label=example.label,
            avoid_snippet=CodeBlockModel.from_block(example.avoid_snippet) if example.avoid_snippet else None,
            good_snippet=CodeBlockModel.from_block(example.good_snippet) if example.good_snippet else None,
            diff=DiffBlockModel.from_diff(example.diff) if example.diff else None,
            diff_source=example.diff_source,
            rationale_avoid=example.rationale_avoid,
            rationale_good=example.rationale_good,
            warnings=[WarningModel(**vars(w)) for w in example.warnings],
        )

    def to_example(self, category_id: int) -> Example:
        return Example(
            index=self.index,
            label=self.label,
            avoid_snippet=self.avoid_snippet.to_block() if self.avoid_snippet else None,
            good_snippet=self.good_snippet.to_block() if self.good_snippet else None,
            diff=self.diff.to_diff() if self.diff else None,
            rationale_avoid=self.rationale_avoid,
            rationale_good=self.rationale_good,
            warnings=[ReconciliationWarning(**w.model_dump()) for w in self.warnings],
            diff_source=self.diff_source,
            category_id=category_id,
        )


class OccurrenceStatModel(BaseModel):
    occurrences: int = Field(..., ge=0)
    total_opportunities: Optional[int] = Field(None, ge=0)
    # Written for readers of the artifact; recomputed on load
    percentage: Optional[float] = None


class PatternModel(BaseModel):
    pattern_id: str
    category_id: int
    title: str
    source_path: Optional[str] = None
    introduction: Optional[str] = None
    references: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    occurrence_stat: Optional[OccurrenceStatModel] = None
    examples: List[ExampleModel] = Field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Document) -> "PatternModel":
        stat = None
        if doc.occurrence_stat is not None:
            stat = OccurrenceStatModel(
                occurrences=doc.occurrence_stat.occurrences,
                total_opportunities=doc.occurrence_stat.total_opportunities,
                percentage=doc.occurrence_stat.percentage,
            )
        return cls(
            pattern_id=doc.pattern_id,
            category_id=doc.category_id,
            title=doc.title,
            source_path=doc.source_path,
            introduction=doc.introduction,
            references=list(doc.references),
            notes=doc.notes,
            occurrence_stat=stat,
            examples=[ExampleModel.from_example(ex) for ex in doc.examples],
        )

    def to_document(self) -> Document:
        stat = None
        if self.occurrence_stat is not None:
            stat = OccurrenceStat(self.occurrence_stat.occurrences, self.occurrence_stat.total_opportunities)
        return Document(
            title=self.title,
            category_id=self.category_id,
            examples=[ex.to_example(self.category_id) for ex in self.examples],
            introduction=self.introduction,
            references=list(self.references),
            notes=self.notes,
            occurrence_stat=stat,
            source_path=self.source_path,
        )


class FailureModel(BaseModel):
    source: str
    error_code: str
    message: str
    entity_id: Optional[str] = None


class CatalogModel(BaseModel):
    version: str = SCHEMA_VERSION
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    total_patterns: int = 0
    statistics: Dict[str, int] = Field(default_factory=dict)
    patterns: List[PatternModel] = Field(default_factory=list)
    failures: List[FailureModel] = Field(default_factory=list)

    @classmethod
    def from_catalog(cls, catalog: Catalog) -> "CatalogModel":
        return cls(
            total_patterns=len(catalog),
            statistics=catalog.statistics(),
            patterns=[PatternModel.from_document(doc) for doc in catalog],
            failures=[FailureModel(**vars(f)) for f in catalog.failures],
        )

    def to_catalog(self) -> Catalog:
        return Catalog(
            documents=[p.to_document() for p in self.patterns],
            failures=[DocumentFailure(**f.model_dump()) for f in self.failures],
        )


class FindingModel(BaseModel):
    code: str
    severity: str
    entity_id: str
    message: str


class ReportModel(BaseModel):
    version: str = SCHEMA_VERSION
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    passed: bool = True
    counts: Dict[str, int] = Field(default_factory=dict)
    findings: List[FindingModel] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: ValidationReport) -> "ReportModel":
        return cls(
            passed=not report.has_errors,
            counts=report.counts(),
            findings=[
                FindingModel(
                    code=f.code,
                    severity=f.severity.value,
                    entity_id=f.entity_id,
                    message=f.message,
                )
                for f in report.findings
            ],
        )
