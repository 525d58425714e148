"""
Catalog validator.

Runs structural and cross-reference checks over a built Catalog. Every
check produces typed findings; nothing here raises, so callers decide what
counts as a failed run (see ValidationReport.exceeds).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, ClassVar, Dict, List, Union
from urllib.parse import urlparse

from .code_blocks import block_problems
from .models import Catalog

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return SEVERITY_ORDER.index(self)


SEVERITY_ORDER = [Severity.INFO, Severity.WARNING, Severity.ERROR]


# ============================================================================
# Findings
# ============================================================================


@dataclass(frozen=True)
class Finding:
    """One validation finding about a catalog entity."""
    entity_id: str
    message: str

    code: ClassVar[str] = "finding"
    severity: ClassVar[Severity] = Severity.ERROR


class StructuralErrorFinding(Finding):
    """A source document was excluded from the catalog."""
    code = "structural_error"


class EmptyDocumentFinding(Finding):
    code = "empty_document"


class MissingCounterpartFinding(Finding):
    """Example lacks its avoid or good snippet."""
    code = "missing_counterpart"


class UnresolvedHighlightFinding(Finding):
    code = "unresolved_highlight"


class DuplicateTitleFinding(Finding):
    """Two catalog entries cannot be told apart by title."""
    code = "duplicate_title"


class MalformedReferenceFinding(Finding):
    code = "malformed_reference"


class ReconciliationFinding(Finding):
    """Hand-written diff disagrees with the snippet pair."""
    code = "reconciliation_warning"
    severity = Severity.WARNING


class InvalidOccurrenceFinding(Finding):
    code = "invalid_occurrence"
    severity = Severity.WARNING


class InternalCheckFinding(Finding):
    """A check itself crashed; the rest of the run still completed."""
    code = "internal_check_error"


# ============================================================================
# Report
# ============================================================================


@dataclass
class ValidationReport:
    findings: List[Finding] = field(default_factory=list)

    def add(self, finding: Finding) -> None:
        self.findings.append(finding)

    def by_severity(self) -> Dict[str, List[Finding]]:
        grouped: Dict[str, List[Finding]] = {s.value: [] for s in reversed(SEVERITY_ORDER)}
        for finding in self.findings:
            grouped[finding.severity.value].append(finding)
        return grouped

    def counts(self) -> Dict[str, int]:
        return {severity: len(items) for severity, items in self.by_severity().items()}

    @property
    def errors(self) -> List[Finding]:
        return [f for f in self.findings if f.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[Finding]:
        return [f for f in self.findings if f.severity is Severity.WARNING]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def exceeds(self, threshold: Union[str, Severity] = Severity.ERROR) -> bool:
        """True if any finding is at or above the given severity."""
        level = Severity(threshold)
        return any(f.severity.rank >= level.rank for f in self.findings)

    def for_entity(self, entity_id: str) -> List[Finding]:
        """Findings about an entity or anything it owns."""
        return [
            f for f in self.findings
            if f.entity_id == entity_id or f.entity_id.startswith(entity_id + "/")
        ]


# ============================================================================
# Checks
# ============================================================================


def check_failures(catalog: Catalog) -> List[Finding]:
    return [
        StructuralErrorFinding(
            entity_id=failure.entity_id or failure.source,
            message=f"{failure.source}: [{failure.error_code}] {failure.message}",
        )
        for failure in catalog.failures
    ]


def check_empty_documents(catalog: Catalog) -> List[Finding]:
    return [
        EmptyDocumentFinding(doc.pattern_id, f"'{doc.title}' has no examples")
        for doc in catalog
        if not doc.examples
    ]


def check_counterparts(catalog: Catalog) -> List[Finding]:
    findings = []
    for _, example in catalog.examples():
        missing = [
            role for role, block in (("avoid", example.avoid_snippet), ("good", example.good_snippet))
            if block is None
        ]
        if missing:
            findings.append(MissingCounterpartFinding(
                example.example_id,
                f"Example '{example.label}' has no {' or '.join(missing)} snippet",
            ))
    return findings


def check_highlights(catalog: Catalog) -> List[Finding]:
    findings = []
    for _, example in catalog.examples():
        for block in example.code_blocks():
            for problem in block_problems(block):
                findings.append(UnresolvedHighlightFinding(block.block_id or example.example_id, problem))
    return findings


def _title_key(title: str) -> str:
    return " ".join(title.lower().split())


def check_duplicate_titles(catalog: Catalog) -> List[Finding]:
    findings = []
    first_by_title: Dict[str, str] = {}
    for doc in catalog:
        key = _title_key(doc.title)
        if key in first_by_title:
            findings.append(DuplicateTitleFinding(
                doc.pattern_id,
                f"Title '{doc.title}' is already used by {first_by_title[key]}",
            ))
        else:
            first_by_title[key] = doc.pattern_id
    return findings


def is_well_formed_url(url: str) -> bool:
    """Absolute http(s)/ftp URL with a plausible host, or a mailto address."""
    if not url or any(ch.isspace() for ch in url):
        return False
    try:
        parsed = urlparse(url)
        host = parsed.hostname
        parsed.port  # raises on a non-numeric port
    except ValueError:
        return False

    if parsed.scheme in ("http", "https", "ftp"):
        return bool(host) and ("." in host or host == "localhost")
    if parsed.scheme == "mailto":
        return "@" in parsed.path
    return False


def check_references(catalog: Catalog) -> List[Finding]:
    return [
        MalformedReferenceFinding(doc.pattern_id, f"Reference is not a well-formed URL: '{url}'")
        for doc in catalog
        for url in doc.references
        if not is_well_formed_url(url)
    ]


def check_reconciliation(catalog: Catalog) -> List[Finding]:
    return [
        ReconciliationFinding(warning.example_id or example.example_id, f"[{warning.kind}] {warning.message}")
        for _, example in catalog.examples()
        for warning in example.warnings
    ]


def check_occurrence(catalog: Catalog) -> List[Finding]:
    return [
        InvalidOccurrenceFinding(
            doc.pattern_id,
            f"Occurrence count {doc.occurrence_stat.occurrences} exceeds "
            f"total {doc.occurrence_stat.total_opportunities}",
        )
        for doc in catalog
        if doc.occurrence_stat is not None and not doc.occurrence_stat.is_consistent
    ]


CHECKS: List[Callable[[Catalog], List[Finding]]] = [
    check_failures,
    check_empty_documents,
    check_counterparts,
    check_highlights,
    check_duplicate_titles,
    check_references,
    check_reconciliation,
    check_occurrence,
]


def validate(catalog: Catalog) -> ValidationReport:
    """Run every check over the catalog.

    Returns:
        ValidationReport; the run always completes
    """
    report = ValidationReport()
    for check in CHECKS:
        try:
            report.findings.extend(check(catalog))
        except Exception as exc:
            logger.exception(f"Validator check '{check.__name__}' failed")
            report.add(InternalCheckFinding("catalog", f"{check.__name__} failed: {exc}"))

    counts = report.counts()
    logger.info(
        f"Validated {len(catalog)} pattern(s): "
        f"{counts['error']} error(s), {counts['warning']} warning(s)"
    )
    return report
