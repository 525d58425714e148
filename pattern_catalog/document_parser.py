"""
Document parser for anti-pattern articles.

Turns one MDX/Markdown article into a Document.

Expected shape:

    # 3. Duplicate State              <- required title: "<n>. <title>"

    Introduction, links to references.

    ## Examples

    ### 1. In Pages                   <- one numbered sub-heading per example
    🛑 Avoid: ...
    ```jsx {2} /useState/
    ...
    ```
    ✅ Good: ...
    ```jsx
    ...
    ```

    ## Notes
    Incorrectly implemented 161 out of 213 times.

Rules:
1. A byte order mark, front matter and MDX import/export lines before the
   title are skipped
2. Headings inside code fences are ignored
3. Without an "Examples" heading, numbered headings after the title are examples
4. Level-2 sections after the examples become the closing notes
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from .code_blocks import extract_example_blocks, fenced_line_numbers, scan_segments
from .diff_reconciler import DIFF_SOURCE_LITERAL, parse_literal_diff
from .errors import EmptyCatalogEntryError, MalformedDocumentError
from .models import Document, Example, pattern_id_for


TITLE_PATTERN = re.compile(r"^#\s+(\d+)\.\s+(.+?)(?:\s+#+)?\s*$")
HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+?)(?:\s+#+)?\s*$")
NUMBERED_PATTERN = re.compile(r"^(\d+)[.)]\s+(.+)$")
EXAMPLES_HEADING_PATTERN = re.compile(r"^examples?\s*:?$", re.IGNORECASE)
FRONT_MATTER_PATTERN = re.compile(r"\A---[ \t]*\n.*?\n---[ \t]*(?:\n|\Z)", re.DOTALL)
MDX_STATEMENT_PATTERN = re.compile(r"^(?:import|export)\s")

LINK_PATTERN = re.compile(r'(?<!!)\[[^\]]*\]\(\s*<?([^)\s>]+)>?(?:\s+"[^"]*")?\s*\)')
AUTOLINK_PATTERN = re.compile(r"<([a-zA-Z][a-zA-Z0-9+.-]*:[^>\s]+)>")
BARE_URL_PATTERN = re.compile(r"(?<![(<\w/])https?://[^\s)<>\]]+")
SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


@dataclass
class Heading:
    line: int  # 0-based line in the body
    level: int
    text: str
    number: Optional[int] = None
    label: str = ""


@dataclass
class ExampleSection:
    index: int
    label: str
    start: int
    end: int


def parse_document(raw_text: str, source_path: Optional[str] = None) -> Document:
    """Parse an anti-pattern article into a Document.

    Args:
        raw_text: Full file content
        source_path: Where the text came from (kept for reporting)

    Returns:
        Document with examples, code blocks and literal diffs filled in.
        Occurrence statistics are left for the catalog builder.

    Raises:
        MalformedDocumentError: If the title heading is missing or example
            numbers repeat
        EmptyCatalogEntryError: If no examples are found
        MalformedAnnotationError: If a code fence annotation is invalid
        UnresolvableHighlightError: If a highlight does not exist in its block
    """
    text = raw_text.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
    lines = _strip_preamble(text)

    title_match = TITLE_PATTERN.match(lines[0]) if lines else None
    if not title_match:
        first = lines[0][:60] if lines else ""
        raise MalformedDocumentError(
            f"Document must begin with a '# <number>. <title>' heading, found: '{first}'",
            source_path,
        )

    category_id = int(title_match.group(1))
    title = title_match.group(2).strip()
    pattern_id = pattern_id_for(category_id)

    body_lines = lines[1:]
    headings = _find_headings(body_lines)
    intro_end, sections, region_end = _locate_examples(body_lines, headings)

    examples: List[Example] = []
    seen_indices = set()
    for section in sections:
        if section.index in seen_indices:
            raise MalformedDocumentError(
                f"Example number {section.index} appears more than once", pattern_id
            )
        seen_indices.add(section.index)
        section_text = "\n".join(body_lines[section.start:section.end])
        examples.append(_build_example(section_text, category_id, section.index, section.label))

    if not examples:
        raise EmptyCatalogEntryError(f"No examples found in '{title}'", pattern_id)

    introduction = _clean("\n".join(body_lines[:intro_end]))
    notes = _collect_notes(body_lines[region_end:])

    return Document(
        title=title,
        category_id=category_id,
        examples=examples,
        introduction=introduction,
        references=extract_references("\n\n".join(t for t in (introduction, notes) if t)),
        notes=notes,
        source_path=source_path,
    )


def _strip_preamble(text: str) -> List[str]:
    """Drop front matter, MDX statements and blank lines before the title."""
    text = FRONT_MATTER_PATTERN.sub("", text, count=1)
    lines = text.split("\n")
    start = 0
    while start < len(lines):
        line = lines[start]
        if not line.strip() or MDX_STATEMENT_PATTERN.match(line):
            start += 1
            continue
        break
    return lines[start:]


def _find_headings(body_lines: List[str]) -> List[Heading]:
    """All ATX headings outside code fences."""
    fenced = fenced_line_numbers("\n".join(body_lines))
    headings = []
    for line_no, line in enumerate(body_lines):
        if line_no in fenced:
            continue
        match = HEADING_PATTERN.match(line)
        if not match:
            continue
        text = match.group(2).strip()
        heading = Heading(line=line_no, level=len(match.group(1)), text=text, label=text)
        numbered = NUMBERED_PATTERN.match(text)
        if numbered:
            heading.number = int(numbered.group(1))
            heading.label = numbered.group(2).strip()
        headings.append(heading)
    return headings


def _locate_examples(body_lines: List[str], headings: List[Heading]):
    """Find where examples live.

    Returns:
        (intro_end, sections, region_end) where sections is a list of
        ExampleSection and the line numbers index body_lines.
    """
    total = len(body_lines)
    examples_heading = next(
        (h for h in headings if h.level <= 2 and EXAMPLES_HEADING_PATTERN.match(h.text)),
        None,
    )

    if examples_heading is not None:
        intro_end = examples_heading.line
        after = [h for h in headings if h.line > examples_heading.line]
        region_end = next((h.line for h in after if h.level <= 2), total)
        inside = [h for h in after if h.line < region_end]

        numbered = [h for h in inside if h.number is not None]
        if numbered:
            chosen = [h for h in numbered if h.level == numbered[0].level]
        elif inside:
            level = min(h.level for h in inside)
            chosen = [h for h in inside if h.level == level]
        else:
            # Examples written directly under the heading form one example
            region = "\n".join(body_lines[intro_end + 1:region_end])
            if any(s.kind == "fence" for s in scan_segments(region)):
                return intro_end, [ExampleSection(1, "Example", intro_end + 1, region_end)], region_end
            return intro_end, [], region_end
    else:
        numbered = [h for h in headings if h.number is not None and h.level >= 2]
        if not numbered:
            return total, [], total

        level = numbered[0].level
        intro_end = numbered[0].line
        region_end = next(
            (
                h.line for h in headings
                if h.line > intro_end and h.level <= level and h.number is None
            ),
            total,
        )
        chosen = [h for h in numbered if h.level == level and h.line < region_end]

    sections = []
    for position, heading in enumerate(chosen):
        end = chosen[position + 1].line if position + 1 < len(chosen) else region_end
        number = heading.number if heading.number is not None else position + 1
        sections.append(ExampleSection(number, heading.label, heading.line + 1, end))
    return intro_end, sections, region_end


def _build_example(section_text: str, category_id: int, index: int, label: str) -> Example:
    blocks = extract_example_blocks(section_text, category_id, index)

    diff = None
    diff_source = None
    if blocks.diff is not None:
        diff = parse_literal_diff(blocks.diff, blocks.diff_summary)
        diff_source = DIFF_SOURCE_LITERAL

    return Example(
        index=index,
        label=label,
        avoid_snippet=blocks.avoid,
        good_snippet=blocks.good,
        diff=diff,
        rationale_avoid=blocks.rationale_avoid,
        rationale_good=blocks.rationale_good,
        diff_source=diff_source,
        category_id=category_id,
    )


def _collect_notes(lines: List[str]) -> Optional[str]:
    """Closing sections without their level-1/2 heading lines."""
    text = "\n".join(lines)
    fenced = fenced_line_numbers(text)
    kept = []
    for line_no, line in enumerate(lines):
        match = HEADING_PATTERN.match(line)
        if match and len(match.group(1)) <= 2 and line_no not in fenced:
            continue
        kept.append(line)
    return _clean("\n".join(kept))


def _clean(text: str) -> Optional[str]:
    text = re.sub(r"\n{3,}", "\n\n", text).strip()
    return text or None


def _is_citation(target: str) -> bool:
    """External link rather than an in-site path or anchor."""
    lowered = target.lower()
    return (
        "://" in target
        or lowered.startswith(("www.", "http"))
        or bool(SCHEME_PATTERN.match(target))
    )


def extract_references(text: str) -> List[str]:
    """Citation URLs in order of first appearance, without duplicates.

    Code blocks are ignored. Relative links and anchors are site
    navigation, not citations, and are skipped.
    """
    prose = "\n".join(
        "\n".join(segment.lines)
        for segment in scan_segments(text or "")
        if segment.kind == "prose"
    )

    found = []
    for pattern in (LINK_PATTERN, AUTOLINK_PATTERN, BARE_URL_PATTERN):
        for match in pattern.finditer(prose):
            target = match.group(1) if match.groups() else match.group(0)
            target = target.rstrip(".,;:")
            if target and _is_citation(target):
                found.append((match.start(), target))

    references = []
    for _, target in sorted(found, key=lambda item: item[0]):
        if target not in references:
            references.append(target)
    return references
