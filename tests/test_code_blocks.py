import pytest

from conftest import highlight_out_of_range
from pattern_catalog.code_blocks import (
    detect_role,
    extract_code_block,
    extract_example_blocks,
    resolve_highlights,
    scan_segments,
    unresolved_highlights,
)
from pattern_catalog.document_parser import parse_document
from pattern_catalog.errors import MalformedAnnotationError, UnresolvableHighlightError
from pattern_catalog.models import LineRangeHighlight, TokenHighlight


SECTION = """
🛑 Avoid: fetching in an effect without cleanup.

```js {2} /fetch/
useEffect(() => {
  fetch(url).then(setData);
}, [url]);
```

✅ Good: let the query library handle it.

```js filename="Profile.js"
const { data } = useQuery(['user', url], load);
```
"""


class TestDetectRole:
    @pytest.mark.parametrize("line, role", [
        ("🛑 Avoid: mutating props", "avoid"),
        ("❌ this breaks on reorder", "avoid"),
        ("**Bad:** shared state", "avoid"),
        ("✅ Good: derive it", "good"),
        ("Do: keep it local", "good"),
        ("Diff view:", "diff"),
        ("#### Diff", "diff"),
        ("Here is the diff between them:", "diff"),
    ])
    def test_markers_and_labels(self, line, role):
        assert detect_role(line) == role

    @pytest.mark.parametrize("line", [
        "Do not copy props into state.",
        "The diff between the two versions is small and easy to read.",
        "Plain explanation.",
        "",
    ])
    def test_plain_prose(self, line):
        assert detect_role(line) is None


class TestExtractExampleBlocks:
    def test_avoid_and_good(self):
        blocks = extract_example_blocks(SECTION, category_id=12, index=2)

        assert blocks.avoid.block_id == "pattern-012/example-2/avoid"
        assert blocks.avoid.language == "js"
        assert blocks.avoid.line_count == 3
        assert blocks.avoid.highlighted_line_numbers == frozenset({2})
        assert blocks.avoid.highlighted_tokens == frozenset({"fetch"})

        assert blocks.good.block_id == "pattern-012/example-2/good"
        assert blocks.good.filename == "Profile.js"
        assert blocks.good.source_lines == ["const { data } = useQuery(['user', url], load);"]

        assert blocks.diff is None
        assert blocks.rationale_avoid == "fetching in an effect without cleanup."
        assert blocks.rationale_good == "let the query library handle it."

    def test_fence_before_any_marker_is_ignored(self):
        text = "Setup:\n\n```js\nsetup()\n```\n\n🛑 Avoid:\n\n```js\nbad()\n```\n"
        blocks = extract_example_blocks(text)
        assert blocks.avoid.source_lines == ["bad()"]
        assert blocks.good is None

    def test_only_first_block_per_role(self):
        text = "✅ Good:\n\n```js\nfirst()\n```\n\n```js\nsecond()\n```\n"
        assert extract_example_blocks(text).good.source_lines == ["first()"]

    def test_diff_fence_and_label_summary(self):
        text = (
            "🛑 Avoid:\n```js\na()\n```\n"
            "✅ Good:\n```js\nb()\n```\n"
            "Diff view (+1/-1):\n```diff\n-a()\n+b()\n```\n"
        )
        blocks = extract_example_blocks(text, 1, 1)
        assert blocks.diff.block_id == "pattern-001/example-1/diff"
        assert blocks.diff.source_lines == ["-a()", "+b()"]
        assert str(blocks.diff_summary) == "+1/-1"

    def test_longer_fence_keeps_inner_fences(self):
        text = "🛑 Avoid:\n\n````md\n```js\nx()\n```\n````\n"
        assert extract_example_blocks(text).avoid.source_lines == ["```js", "x()", "```"]

    def test_malformed_annotation(self):
        text = "🛑 Avoid:\n\n```js {0}\nx()\n```\n"
        with pytest.raises(MalformedAnnotationError):
            extract_example_blocks(text, 4, 1)

    def test_unclosed_fence_runs_to_end(self):
        segments = scan_segments("intro\n```js\na()\nb()")
        assert [s.kind for s in segments] == ["prose", "fence"]
        assert segments[1].lines == ["a()", "b()"]


class TestExtractCodeBlock:
    def test_single_role(self):
        block = extract_code_block(SECTION, "good", 12, 2)
        assert block.language == "js"

    def test_missing_role(self):
        assert extract_code_block(SECTION, "diff") is None

    def test_unknown_role(self):
        with pytest.raises(ValueError):
            extract_code_block(SECTION, "neutral")


class TestResolveHighlights:
    LINES = ["const a = 1", "const b = a"]

    def test_resolves(self):
        lines, tokens = resolve_highlights(
            self.LINES,
            (LineRangeHighlight(1, 2),),
            (TokenHighlight("a", 2),),
        )
        assert lines == frozenset({1, 2})
        assert tokens == frozenset({"a"})

    def test_occurrence_beyond_count(self):
        with pytest.raises(UnresolvableHighlightError):
            resolve_highlights(self.LINES, (), (TokenHighlight("a", 3),), "blk")

    def test_missing_token(self):
        with pytest.raises(UnresolvableHighlightError) as exc_info:
            resolve_highlights(self.LINES, (), (TokenHighlight("useMemo"),), "blk")
        assert "useMemo" in exc_info.value.message

    def test_huge_range_is_rejected_by_its_bounds(self):
        with pytest.raises(UnresolvableHighlightError) as exc_info:
            resolve_highlights(["only()"], (LineRangeHighlight(1, 30_000_000),), (), "blk")
        assert "1-30000000" in exc_info.value.message
        assert "(1-1)" in exc_info.value.message

    def test_one_problem_per_token(self):
        highlights = tuple(TokenHighlight("a", i) for i in range(1, 40_001))
        problems = unresolved_highlights(self.LINES, (), highlights)
        assert problems == ["highlighted token 'a' occurrence 40000 requested but it occurs 2 time(s)"]

    def test_ranges_that_fit_are_expanded(self):
        lines, _ = resolve_highlights(self.LINES, (LineRangeHighlight(2, 2), LineRangeHighlight(1, 2)), ())
        assert lines == frozenset({1, 2})

    def test_line_outside_block_aborts_document(self):
        with pytest.raises(UnresolvableHighlightError) as exc_info:
            parse_document(highlight_out_of_range(lines=40, highlighted=99))

        error = exc_info.value
        assert error.entity_id == "pattern-005/example-1/avoid"
        assert "99" in error.message
        assert "1-40" in error.message
