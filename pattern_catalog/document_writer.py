"""
Writes a Document back out as Markdown in the layout the parser reads.

Only hand-written diffs are emitted; computed diffs are derived data and
are recomputed when the output is parsed again.
"""

from __future__ import annotations

import re
from typing import List

from .diff_reconciler import DIFF_SOURCE_LITERAL
from .fence_meta import format_fence_meta
from .models import CodeBlock, Document, Example, FenceMeta

BACKTICK_RUN = re.compile(r"^\s*(`{3,})")


def _fence_for(lines: List[str]) -> str:
    longest = 2
    for line in lines:
        match = BACKTICK_RUN.match(line)
        if match:
            longest = max(longest, len(match.group(1)))
    return "`" * (longest + 1)


def render_code_block(block: CodeBlock) -> str:
    meta = FenceMeta(
        language=block.language,
        filename=block.filename,
        show_line_numbers=block.show_line_numbers,
        line_ranges=block.line_ranges,
        token_highlights=block.token_highlights,
        flags=block.flags,
    )
    fence = _fence_for(block.source_lines)
    return "\n".join([fence + format_fence_meta(meta), *block.source_lines, fence])


def render_example(example: Example) -> str:
    parts = [f"### {example.index}. {example.label}"]

    if example.avoid_snippet is not None or example.rationale_avoid:
        parts.append(f"🛑 Avoid: {example.rationale_avoid}".rstrip())
        if example.avoid_snippet is not None:
            parts.append(render_code_block(example.avoid_snippet))

    if example.good_snippet is not None or example.rationale_good:
        parts.append(f"✅ Good: {example.rationale_good}".rstrip())
        if example.good_snippet is not None:
            parts.append(render_code_block(example.good_snippet))

    if example.diff is not None and example.diff_source == DIFF_SOURCE_LITERAL:
        label = "Diff view"
        if example.diff.summary is not None:
            label += f" ({example.diff.summary})"
        lines = example.diff.lines or (
            [f"-{line}" for line in example.diff.removed_lines]
            + [f"+{line}" for line in example.diff.added_lines]
        )
        fence = _fence_for(lines)
        parts.append(f"{label}:")
        parts.append("\n".join([f"{fence}diff", *lines, fence]))

    return "\n\n".join(parts)


def render_document(document: Document) -> str:
    """Render a Document as Markdown.

    Example:
        >>> text = render_document(doc)
        >>> parse_document(text).title == doc.title
        True
    """
    parts = [f"# {document.category_id}. {document.title}"]
    if document.introduction:
        parts.append(document.introduction)

    parts.append("## Examples")
    parts.extend(render_example(example) for example in document.examples)

    if document.notes:
        parts.append("## Notes")
        parts.append(document.notes)

    return "\n\n".join(parts) + "\n"
