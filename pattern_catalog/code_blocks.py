"""
Code block extractor for pattern examples.

Within one example section, finds the "avoid" snippet, the "good" snippet
and the diff view, and resolves their fence annotations.

Rules:
1. A prose line with 🛑 (or an `Avoid:` / `Bad:` label) starts the avoid role
2. A prose line with ✅ (or a `Good:` / `Do:` label) starts the good role
3. A short label line (heading, bold, or ending in ":") mentioning "diff"
   starts the diff role
4. The first fenced block after a role marker belongs to that role
5. A fence tagged `diff` is always the diff view
6. Prose under a role is that role's rationale
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from .errors import UnresolvableHighlightError
from .fence_meta import parse_fence_meta, parse_summary
from .models import (
    ROLE_AVOID,
    ROLE_DIFF,
    ROLE_GOOD,
    ROLES,
    CodeBlock,
    DiffSummary,
    FenceMeta,
    LineRangeHighlight,
    TokenHighlight,
    block_id_for,
)


FENCE_OPEN_PATTERN = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")

AVOID_MARKERS = ("🛑", "❌")
GOOD_MARKERS = ("✅", "✔️")
ROLE_LABEL_PATTERN = re.compile(
    r"^[\s>*_#-]*(?P<label>avoid|bad|good|do|diff(?:\s+view)?)[\s*_]*(?::|–|—|-\s|$)",
    re.IGNORECASE,
)
DIFF_MENTION_PATTERN = re.compile(r"\bdiff\b", re.IGNORECASE)
MAX_DIFF_LABEL_LENGTH = 80
LABEL_ROLES = {
    "avoid": ROLE_AVOID,
    "bad": ROLE_AVOID,
    "good": ROLE_GOOD,
    "do": ROLE_GOOD,
}


@dataclass
class Segment:
    """A run of prose lines or one fenced code block."""
    kind: str  # "prose" or "fence"
    lines: List[str]
    info: str = ""
    start_line: int = 0


@dataclass
class ExampleBlocks:
    """Everything the extractor found in one example section."""
    avoid: Optional[CodeBlock] = None
    good: Optional[CodeBlock] = None
    diff: Optional[CodeBlock] = None
    diff_summary: Optional[DiffSummary] = None
    rationale_avoid: str = ""
    rationale_good: str = ""

    def get(self, role: str) -> Optional[CodeBlock]:
        return {ROLE_AVOID: self.avoid, ROLE_GOOD: self.good, ROLE_DIFF: self.diff}[role]


def scan_segments(text: str) -> List[Segment]:
    """Split markdown into prose runs and fenced code blocks.

    An unclosed fence runs to the end of the text.
    """
    segments: List[Segment] = []
    prose: List[str] = []
    prose_start = 0
    lines = text.split("\n")
    i = 0

    while i < len(lines):
        match = FENCE_OPEN_PATTERN.match(lines[i])
        if match and not (match.group("fence")[0] == "`" and "`" in match.group("info")):
            if prose:
                segments.append(Segment("prose", prose, start_line=prose_start))
                prose = []

            fence = match.group("fence")
            indent = len(match.group("indent"))
            close_pattern = re.compile(r"^ {0,3}" + re.escape(fence[0]) + "{" + str(len(fence)) + r",}\s*$")

            start = i
            body: List[str] = []
            i += 1
            while i < len(lines) and not close_pattern.match(lines[i]):
                body.append(_dedent(lines[i], indent))
                i += 1
            segments.append(Segment("fence", body, info=match.group("info").strip(), start_line=start))
            i += 1  # skip closing fence
            prose_start = i
            continue

        if not prose:
            prose_start = i
        prose.append(lines[i])
        i += 1

    if prose:
        segments.append(Segment("prose", prose, start_line=prose_start))
    return segments


def fenced_line_numbers(text: str) -> FrozenSet[int]:
    """0-based indices of lines that sit inside (or delimit) a code fence."""
    inside = set()
    lines_total = len(text.split("\n"))
    for segment in scan_segments(text):
        if segment.kind == "fence":
            # opening fence + body + closing fence
            end = min(segment.start_line + len(segment.lines) + 2, lines_total)
            inside.update(range(segment.start_line, end))
    return frozenset(inside)


def _dedent(line: str, width: int) -> str:
    stripped = 0
    while stripped < width and stripped < len(line) and line[stripped] == " ":
        stripped += 1
    return line[stripped:]


def detect_role(line: str) -> Optional[str]:
    """Role announced by a prose line, if any."""
    if any(marker in line for marker in AVOID_MARKERS):
        return ROLE_AVOID
    if any(marker in line for marker in GOOD_MARKERS):
        return ROLE_GOOD

    match = ROLE_LABEL_PATTERN.match(line)
    if match:
        label = match.group("label").lower()
        if label.startswith("diff"):
            return ROLE_DIFF
        return LABEL_ROLES[label]

    stripped = line.strip()
    if (
        stripped
        and len(stripped) <= MAX_DIFF_LABEL_LENGTH
        and DIFF_MENTION_PATTERN.search(stripped)
        and (stripped.endswith(":") or stripped.startswith(("#", "*", "_")))
    ):
        return ROLE_DIFF
    return None


def _strip_role_label(line: str) -> str:
    for marker in AVOID_MARKERS + GOOD_MARKERS:
        line = line.replace(marker, "")
    line = ROLE_LABEL_PATTERN.sub("", line, count=1)
    return line.strip().strip("*_").strip()


def extract_example_blocks(section_text: str, category_id: int = 0, index: int = 0) -> ExampleBlocks:
    """Locate avoid, good and diff blocks in an example section.

    Args:
        section_text: Raw markdown of one example (heading excluded)
        category_id: Owning document's category, used for block ids
        index: Example index, used for block ids

    Returns:
        ExampleBlocks with resolved CodeBlocks and rationales

    Raises:
        MalformedAnnotationError: If a fence annotation is invalid
        UnresolvableHighlightError: If a highlight does not exist in its block
    """
    found = ExampleBlocks()
    rationale = {ROLE_AVOID: [], ROLE_GOOD: []}
    role: Optional[str] = None

    for segment in scan_segments(section_text):
        if segment.kind == "prose":
            for line in segment.lines:
                new_role = detect_role(line)
                if new_role:
                    role = new_role
                    if role == ROLE_DIFF and found.diff_summary is None:
                        found.diff_summary = parse_summary(line)
                    line = _strip_role_label(line)
                if role in rationale:
                    rationale[role].append(line)
            continue

        info_words = segment.info.split()
        language = info_words[0] if info_words and not info_words[0].startswith(("{", "/")) else ""

        if language.lower() == "diff" or role == ROLE_DIFF:
            target = ROLE_DIFF
        elif role in (ROLE_AVOID, ROLE_GOOD):
            target = role
        else:
            continue
        if found.get(target) is not None:
            continue

        block_id = block_id_for(category_id, index, target)
        meta = parse_fence_meta(segment.info, block_id)
        block = build_code_block(segment.lines, meta, block_id)

        if target == ROLE_DIFF:
            found.diff = block
            if meta.summary is not None:
                found.diff_summary = meta.summary
        elif target == ROLE_AVOID:
            found.avoid = block
        else:
            found.good = block

    found.rationale_avoid = _join_prose(rationale[ROLE_AVOID])
    found.rationale_good = _join_prose(rationale[ROLE_GOOD])
    return found


def extract_code_block(
    section_text: str,
    role: str,
    category_id: int = 0,
    index: int = 0,
) -> Optional[CodeBlock]:
    """Return the block for one role ('avoid', 'good' or 'diff'), or None."""
    if role not in ROLES:
        raise ValueError(f"Unknown role '{role}'. Must be one of: {ROLES}")
    return extract_example_blocks(section_text, category_id, index).get(role)


def _join_prose(lines: List[str]) -> str:
    text = "\n".join(lines).strip()
    return re.sub(r"\n{3,}", "\n\n", text)


def build_code_block(source_lines: List[str], meta: FenceMeta, block_id: str) -> CodeBlock:
    """Create a CodeBlock with resolved highlights."""
    lines = list(source_lines)
    line_numbers, tokens = resolve_highlights(lines, meta.line_ranges, meta.token_highlights, block_id)
    return CodeBlock(
        language=meta.language,
        source_lines=lines,
        filename=meta.filename,
        highlighted_line_numbers=line_numbers,
        highlighted_tokens=tokens,
        block_id=block_id,
        show_line_numbers=meta.show_line_numbers,
        line_ranges=meta.line_ranges,
        token_highlights=meta.token_highlights,
        flags=meta.flags,
    )


def resolve_highlights(
    source_lines: List[str],
    line_ranges: Tuple[LineRangeHighlight, ...],
    token_highlights: Tuple[TokenHighlight, ...],
    block_id: str = "",
) -> Tuple[FrozenSet[int], FrozenSet[str]]:
    """Turn declared ranges and tokens into concrete sets.

    Raises:
        UnresolvableHighlightError: On the first line number outside the
            block or token missing from it
    """
    problems = unresolved_highlights(source_lines, line_ranges, token_highlights)
    if problems:
        raise UnresolvableHighlightError(f"{block_id}: {problems[0]}", block_id)

    line_numbers = frozenset(n for r in line_ranges for n in r.lines())
    tokens = frozenset(h.token for h in token_highlights)
    return line_numbers, tokens


def unresolved_highlights(
    source_lines: List[str],
    line_ranges: Tuple[LineRangeHighlight, ...] = (),
    token_highlights: Tuple[TokenHighlight, ...] = (),
    line_numbers: FrozenSet[int] = frozenset(),
    tokens: FrozenSet[str] = frozenset(),
) -> List[str]:
    """Describe every highlight that does not resolve against source_lines.

    Ranges are checked by their bounds, never expanded.
    """
    problems: List[str] = []
    line_count = len(source_lines)
    text = "\n".join(source_lines)

    for r in line_ranges:
        if r.start < 1 or r.end > line_count:
            shown = str(r.start) if r.start == r.end else f"{r.start}-{r.end}"
            problems.append(f"highlighted line {shown} is outside the block (1-{line_count})")
    for number in sorted(line_numbers):
        if number < 1 or number > line_count:
            problems.append(f"highlighted line {number} is outside the block (1-{line_count})")

    # Highest occurrence requested per token, in declaration order
    needed: Dict[str, int] = {}
    for highlight in token_highlights:
        needed[highlight.token] = max(needed.get(highlight.token, 1), highlight.occurrence_index or 1)

    for token, occurrence in needed.items():
        found = text.count(token) if token else 0
        if found == 0:
            problems.append(f"highlighted token '{token}' does not occur in the block")
        elif found < occurrence:
            problems.append(
                f"highlighted token '{token}' occurrence {occurrence} requested "
                f"but it occurs {found} time(s)"
            )

    for token in sorted(set(tokens) - set(needed)):
        if not token or token not in text:
            problems.append(f"highlighted token '{token}' does not occur in the block")

    return problems


def block_problems(block: CodeBlock) -> List[str]:
    """Re-check a built CodeBlock's highlights against its own lines."""
    return unresolved_highlights(
        block.source_lines,
        block.line_ranges,
        block.token_highlights,
        block.highlighted_line_numbers,
        block.highlighted_tokens,
    )
