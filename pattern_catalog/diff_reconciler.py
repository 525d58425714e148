"""
Diff reconciler for avoid/good snippet pairs.

Computes a line-level longest-common-subsequence alignment between the two
snippets and compares it against the hand-written diff view, when the
document has one. Documentation diffs are written by hand and may summarize,
so mismatches are reported as warnings and never reject an example.

Lines are compared after whitespace normalization (strip, collapse runs).
Blank lines, and lines present in both snippets (moved or repeated), never
count as additions or removals.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from .models import (
    CodeBlock,
    DiffBlock,
    DiffSummary,
    Document,
    Example,
    ReconciliationWarning,
)

logger = logging.getLogger(__name__)

WHITESPACE_RE = re.compile(r"\s+")

ADDITION_NOT_COMPUTED = "addition_not_computed"
ADDITION_NOT_DECLARED = "addition_not_declared"
REMOVAL_NOT_COMPUTED = "removal_not_computed"
REMOVAL_NOT_DECLARED = "removal_not_declared"
SUMMARY_MISMATCH = "summary_mismatch"

DIFF_SOURCE_LITERAL = "literal"
DIFF_SOURCE_COMPUTED = "computed"


@dataclass
class ReconciliationResult:
    """Authoritative diff for an example plus any warnings found."""
    diff: DiffBlock
    computed: DiffBlock
    source: str
    warnings: List[ReconciliationWarning] = field(default_factory=list)


def normalize_line(line: str) -> str:
    return WHITESPACE_RE.sub(" ", line or "").strip()


def _lcs_operations(old: List[str], new: List[str]) -> List[Tuple[str, int]]:
    """Edit script from an LCS table over normalized lines.

    Returns (op, index) pairs in order, where op is '=' (index into new),
    '-' (index into old) or '+' (index into new). Ties prefer removals,
    so a replaced line reads as '-old' then '+new'.
    """
    a = [normalize_line(line) for line in old]
    b = [normalize_line(line) for line in new]
    n, m = len(a), len(b)

    # table[i][j] = LCS length of a[i:] and b[j:]
    table = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        for j in range(m - 1, -1, -1):
            if a[i] == b[j]:
                table[i][j] = table[i + 1][j + 1] + 1
            else:
                table[i][j] = max(table[i + 1][j], table[i][j + 1])

    ops: List[Tuple[str, int]] = []
    i = j = 0
    while i < n and j < m:
        if a[i] == b[j]:
            ops.append(("=", j))
            i += 1
            j += 1
        elif table[i + 1][j] >= table[i][j + 1]:
            ops.append(("-", i))
            i += 1
        else:
            ops.append(("+", j))
            j += 1
    ops.extend(("-", k) for k in range(i, n))
    ops.extend(("+", k) for k in range(j, m))
    return ops


def compute_diff(avoid: CodeBlock, good: CodeBlock) -> DiffBlock:
    """Compute the authoritative diff between two snippets.

    Only lines unique to one side count as changes. A line that moves or
    repeats is context: it is listed once, where it sits in the good
    snippet.

    Example:
        >>> avoid = CodeBlock("js", ["a", "b", "c"])
        >>> good = CodeBlock("js", ["a", "x", "c"])
        >>> diff = compute_diff(avoid, good)
        >>> diff.added_lines, diff.removed_lines, diff.unchanged_context
        (['x'], ['b'], ['a', 'c'])
    """
    avoid_keys = {normalize_line(line) for line in avoid.source_lines}
    good_keys = {normalize_line(line) for line in good.source_lines}

    added: List[str] = []
    removed: List[str] = []
    context: List[str] = []
    lines: List[str] = []

    for op, index in _lcs_operations(avoid.source_lines, good.source_lines):
        line = avoid.source_lines[index] if op == "-" else good.source_lines[index]
        key = normalize_line(line)
        if not key:
            lines.append(" " + line)
            continue
        if op == "-" and key in good_keys:
            continue  # shown where the good snippet has it
        if op == "+" and key in avoid_keys:
            op = "="

        if op == "+":
            added.append(line)
        elif op == "-":
            removed.append(line)
        else:
            context.append(line)
        lines.append((op if op != "=" else " ") + line)

    return DiffBlock(
        added_lines=added,
        removed_lines=removed,
        unchanged_context=context,
        summary=DiffSummary(len(added), len(removed)),
        lines=lines,
    )


def parse_literal_diff(block: CodeBlock, summary: Optional[DiffSummary] = None) -> DiffBlock:
    """Read a hand-written diff view.

    Args:
        block: The fenced diff block
        summary: Declared '+N/-M' counts from the diff label, if any

    Returns:
        DiffBlock split into added, removed and context lines
    """
    added: List[str] = []
    removed: List[str] = []
    context: List[str] = []
    lines: List[str] = []

    for raw in block.source_lines:
        if raw.startswith(("+++ ", "--- ", "@@")):
            continue
        if raw.startswith("+"):
            body = raw[1:]
            if normalize_line(body):
                added.append(body)
        elif raw.startswith("-"):
            body = raw[1:]
            if normalize_line(body):
                removed.append(body)
        else:
            body = raw[1:] if raw.startswith(" ") else raw
            if normalize_line(body):
                context.append(body)
        lines.append(raw)

    return DiffBlock(
        added_lines=added,
        removed_lines=removed,
        unchanged_context=context,
        summary=summary,
        lines=lines,
    )


def reconcile(
    avoid: CodeBlock,
    good: CodeBlock,
    diff: Optional[DiffBlock] = None,
    example_id: str = "",
) -> ReconciliationResult:
    """Check a literal diff against the computed alignment.

    With no literal diff, the computed alignment becomes authoritative.
    With one, the literal diff is kept and every disagreement is reported.
    """
    computed = compute_diff(avoid, good)
    if diff is None:
        return ReconciliationResult(diff=computed, computed=computed, source=DIFF_SOURCE_COMPUTED)

    good_lines = {normalize_line(line) for line in good.source_lines}
    avoid_lines = {normalize_line(line) for line in avoid.source_lines}
    warnings: List[ReconciliationWarning] = []

    warnings.extend(_compare_side(
        declared=diff.added_lines,
        computed=computed.added_lines,
        own_side=good_lines,
        other_side=avoid_lines,
        own_name="good",
        other_name="avoid",
        not_computed=ADDITION_NOT_COMPUTED,
        not_declared=ADDITION_NOT_DECLARED,
        verb="added",
        example_id=example_id,
    ))
    warnings.extend(_compare_side(
        declared=diff.removed_lines,
        computed=computed.removed_lines,
        own_side=avoid_lines,
        other_side=good_lines,
        own_name="avoid",
        other_name="good",
        not_computed=REMOVAL_NOT_COMPUTED,
        not_declared=REMOVAL_NOT_DECLARED,
        verb="removed",
        example_id=example_id,
    ))

    if not diff.summary_matches():
        warnings.append(ReconciliationWarning(
            kind=SUMMARY_MISMATCH,
            line=str(diff.summary),
            message=(
                f"diff summary {diff.summary} does not match "
                f"+{len(diff.added_lines)}/-{len(diff.removed_lines)} marked lines"
            ),
            example_id=example_id,
        ))

    if warnings:
        logger.debug(f"{example_id}: {len(warnings)} reconciliation warning(s)")

    return ReconciliationResult(
        diff=diff,
        computed=computed,
        source=DIFF_SOURCE_LITERAL,
        warnings=warnings,
    )


def _compare_side(
    declared: List[str],
    computed: List[str],
    own_side: set,
    other_side: set,
    own_name: str,
    other_name: str,
    not_computed: str,
    not_declared: str,
    verb: str,
    example_id: str,
) -> List[ReconciliationWarning]:
    """Multiset comparison of one side (additions or removals)."""
    warnings = []
    remaining = Counter(normalize_line(line) for line in computed)

    for line in declared:
        key = normalize_line(line)
        if remaining[key] > 0:
            remaining[key] -= 1
            continue
        if key not in own_side:
            reason = f"does not appear in the {own_name} snippet"
        elif key in other_side:
            reason = f"also appears in the {other_name} snippet"
        else:
            reason = "is not a change in the computed alignment"
        warnings.append(ReconciliationWarning(
            kind=not_computed,
            line=line,
            message=f"line marked as {verb} {reason}: '{key}'",
            example_id=example_id,
        ))

    declared_counts = Counter(normalize_line(line) for line in declared)
    for line in computed:
        key = normalize_line(line)
        if declared_counts[key] > 0:
            declared_counts[key] -= 1
            continue
        warnings.append(ReconciliationWarning(
            kind=not_declared,
            line=line,
            message=f"line {verb} between snippets is missing from the diff view: '{key}'",
            example_id=example_id,
        ))

    return warnings


def reconcile_example(example: Example) -> Example:
    """Return a copy of the example carrying its authoritative diff."""
    if example.avoid_snippet is None or example.good_snippet is None:
        return replace(example, warnings=list(example.warnings))

    literal = example.diff if example.diff_source == DIFF_SOURCE_LITERAL else None
    result = reconcile(example.avoid_snippet, example.good_snippet, literal, example.example_id)
    return replace(
        example,
        diff=result.diff,
        diff_source=result.source,
        warnings=list(example.warnings) + result.warnings,
    )


def reconcile_document(document: Document) -> Document:
    """Return a copy of the document with every example reconciled."""
    examples = [reconcile_example(example) for example in document.examples]
    return replace(document, examples=examples)
