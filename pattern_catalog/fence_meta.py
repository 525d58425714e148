"""
Parser for code fence annotations.

The info string after an opening fence declares the language and, Nextra
style, what to highlight:

    ```jsx {1,4-6} filename="pages/index.jsx" showLineNumbers /useState/ /data/2
    ```

Grammar (whitespace separated, any order after the language):
    {a,b-c}           LineRangeHighlight per item
    /token/           TokenHighlight for every occurrence
    /token/N          only the Nth occurrence (also N-M and N,M lists)
    filename="..."    display filename (title="..." is accepted too)
    showLineNumbers   line numbering toggle
    +N/-M             diff summary
    anything else     kept as a flag

Only the annotation is parsed here. Checking it against the code lives in
code_blocks.resolve_highlights.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from .errors import MalformedAnnotationError
from .models import DiffSummary, FenceMeta, LineRangeHighlight, TokenHighlight


META_TOKEN_PATTERN = re.compile(
    r"""
    (?P<attr>[A-Za-z_][\w-]*=(?:"[^"]*"|'[^']*'|\S+))
    | (?P<range>\{[^}]*\})
    | (?P<summary>\+\d+/-\d+(?=\s|$))
    | (?P<token>/(?:\\.|[^/\\])+/(?:\d+(?:[-,]\d+)*)?(?=\s|$))
    | (?P<word>\S+)
    """,
    re.VERBOSE,
)
SUMMARY_PATTERN = re.compile(r"\+(\d+)\s*/\s*-(\d+)")
FILENAME_KEYS = ("filename", "title")


def parse_fence_meta(info: str, entity_id: Optional[str] = None) -> FenceMeta:
    """Parse the info string of an opening code fence.

    Args:
        info: Everything after the backticks, e.g. 'jsx {2} /useQuery/'
        entity_id: Block identifier used in error messages

    Returns:
        FenceMeta with language, ranges, tokens, filename and flags

    Raises:
        MalformedAnnotationError: If a range or occurrence index is invalid

    Example:
        >>> meta = parse_fence_meta('jsx {1,3-4} /state/2')
        >>> [r.end for r in meta.line_ranges]
        [1, 4]
        >>> meta.token_highlights[0].occurrence_index
        2
    """
    language = ""
    filename = None
    show_line_numbers = False
    line_ranges: List[LineRangeHighlight] = []
    tokens: List[TokenHighlight] = []
    flags: List[str] = []
    summary = None

    for position, match in enumerate(META_TOKEN_PATTERN.finditer(info.strip())):
        kind = match.lastgroup
        text = match.group(kind)

        if kind == "word":
            if position == 0:
                language = text
            elif text == "showLineNumbers":
                show_line_numbers = True
            else:
                flags.append(text)
        elif kind == "attr":
            key, value = text.split("=", 1)
            value = _unquote(value)
            if key in FILENAME_KEYS:
                filename = filename or value
            elif key == "showLineNumbers":
                show_line_numbers = value.lower() not in ("false", "0", "no")
            else:
                flags.append(text)
        elif kind == "range":
            line_ranges.extend(_parse_line_ranges(text, entity_id))
        elif kind == "token":
            tokens.extend(_parse_token(text, entity_id))
        elif kind == "summary":
            summary = parse_summary(text)

    return FenceMeta(
        language=language,
        filename=filename,
        show_line_numbers=show_line_numbers,
        line_ranges=tuple(line_ranges),
        token_highlights=tuple(tokens),
        flags=tuple(flags),
        summary=summary,
    )


def parse_summary(text: str) -> Optional[DiffSummary]:
    """Find a `+N/-M` summary anywhere in text."""
    match = SUMMARY_PATTERN.search(text or "")
    if not match:
        return None
    return DiffSummary(added=int(match.group(1)), removed=int(match.group(2)))


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _parse_line_ranges(text: str, entity_id: Optional[str]) -> List[LineRangeHighlight]:
    """Parse '{1,4-6}' into LineRangeHighlight items."""
    body = text[1:-1].strip()
    if not body:
        raise MalformedAnnotationError(f"Empty line range '{text}'", entity_id)

    ranges = []
    for item in body.split(","):
        item = item.strip()
        match = re.fullmatch(r"(\d+)(?:\s*-\s*(\d+))?", item)
        if not match:
            raise MalformedAnnotationError(f"Invalid line range '{item}' in '{text}'", entity_id)
        start = int(match.group(1))
        end = int(match.group(2)) if match.group(2) else start
        if start < 1 or end < start:
            raise MalformedAnnotationError(f"Invalid line range '{item}' in '{text}'", entity_id)
        ranges.append(LineRangeHighlight(start, end))
    return ranges


def _parse_token(text: str, entity_id: Optional[str]) -> List[TokenHighlight]:
    """Parse '/token/' or '/token/1-3' into one highlight per occurrence."""
    closing = _closing_slash(text)
    token = text[1:closing].replace("\\/", "/")
    suffix = text[closing + 1:]

    if not suffix:
        return [TokenHighlight(token)]

    indices = []
    for part in suffix.split(","):
        if "-" in part:
            first, last = (int(n) for n in part.split("-", 1))
            if last < first:
                raise MalformedAnnotationError(
                    f"Invalid occurrence range '{part}' for token '{token}'", entity_id
                )
            indices.extend(range(first, last + 1))
        else:
            indices.append(int(part))

    if any(i < 1 for i in indices):
        raise MalformedAnnotationError(
            f"Occurrence index must start at 1 for token '{token}'", entity_id
        )

    # Keep declaration order, drop repeats
    return [TokenHighlight(token, i) for i in dict.fromkeys(indices)]


def _closing_slash(text: str) -> int:
    i = 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == "/":
            return i
        i += 1
    return len(text) - 1


def format_fence_meta(meta: FenceMeta) -> str:
    """Render a FenceMeta back into an info string.

    Consecutive occurrence indices of the same token are written as one
    '/token/N-M' item.
    """
    parts: List[str] = []
    if meta.language:
        parts.append(meta.language)
    if meta.line_ranges:
        items = [
            str(r.start) if r.start == r.end else f"{r.start}-{r.end}"
            for r in meta.line_ranges
        ]
        parts.append("{" + ",".join(items) + "}")
    if meta.filename:
        parts.append(f'filename="{meta.filename}"')
    if meta.show_line_numbers:
        parts.append("showLineNumbers")
    for token, indices in _group_tokens(meta.token_highlights):
        escaped = token.replace("/", "\\/")
        parts.append(f"/{escaped}/{_format_indices(indices)}")
    if meta.summary:
        parts.append(str(meta.summary))
    parts.extend(meta.flags)
    return " ".join(parts)


def _group_tokens(highlights: Tuple[TokenHighlight, ...]) -> List[Tuple[str, List[int]]]:
    grouped: List[Tuple[str, List[int]]] = []
    for highlight in highlights:
        if grouped and grouped[-1][0] == highlight.token and highlight.occurrence_index and grouped[-1][1]:
            grouped[-1][1].append(highlight.occurrence_index)
            continue
        indices = [highlight.occurrence_index] if highlight.occurrence_index else []
        grouped.append((highlight.token, indices))
    return grouped


def _format_indices(indices: List[int]) -> str:
    if not indices:
        return ""
    if indices == list(range(indices[0], indices[-1] + 1)) and len(indices) > 1:
        return f"{indices[0]}-{indices[-1]}"
    return ",".join(str(i) for i in indices)
