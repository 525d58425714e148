import pytest

from pattern_catalog.errors import MalformedAnnotationError
from pattern_catalog.fence_meta import format_fence_meta, parse_fence_meta, parse_summary
from pattern_catalog.models import DiffSummary, FenceMeta, LineRangeHighlight, TokenHighlight


class TestParseFenceMeta:
    def test_full_annotation(self):
        meta = parse_fence_meta('jsx {1,4-6} filename="pages/index.jsx" showLineNumbers /useState/ /data/2')

        assert meta.language == "jsx"
        assert meta.line_ranges == (LineRangeHighlight(1, 1), LineRangeHighlight(4, 6))
        assert meta.filename == "pages/index.jsx"
        assert meta.show_line_numbers is True
        assert meta.token_highlights == (TokenHighlight("useState"), TokenHighlight("data", 2))

    def test_empty_info(self):
        assert parse_fence_meta("") == FenceMeta()

    def test_language_only(self):
        meta = parse_fence_meta("python")
        assert meta.language == "python"
        assert meta.line_ranges == ()
        assert meta.token_highlights == ()

    def test_occurrence_range_expands(self):
        meta = parse_fence_meta("js /state/1-3")
        assert [h.occurrence_index for h in meta.token_highlights] == [1, 2, 3]

    def test_occurrence_list(self):
        meta = parse_fence_meta("js /state/1,3,3")
        assert [h.occurrence_index for h in meta.token_highlights] == [1, 3]

    def test_escaped_slash_in_token(self):
        meta = parse_fence_meta(r"js /a\/b/")
        assert meta.token_highlights == (TokenHighlight("a/b"),)

    def test_title_attribute_is_filename(self):
        meta = parse_fence_meta("js title='utils.js'")
        assert meta.filename == "utils.js"

    def test_unknown_words_are_flags(self):
        meta = parse_fence_meta("js copy wrap=true")
        assert meta.flags == ("copy", "wrap=true")

    def test_diff_summary(self):
        meta = parse_fence_meta("diff +2/-1")
        assert meta.language == "diff"
        assert meta.summary == DiffSummary(2, 1)

    @pytest.mark.parametrize("info", [
        "js {}",
        "js {0}",
        "js {5-2}",
        "js {a}",
        "js /token/0",
        "js /token/3-1",
    ])
    def test_malformed_annotations(self, info):
        with pytest.raises(MalformedAnnotationError) as exc_info:
            parse_fence_meta(info, "pattern-001/example-1/avoid")
        assert exc_info.value.entity_id == "pattern-001/example-1/avoid"
        assert exc_info.value.error_code == "malformed_annotation"


class TestParseSummary:
    def test_inside_label(self):
        assert parse_summary("Diff view (+3/-2):") == DiffSummary(3, 2)

    def test_absent(self):
        assert parse_summary("Diff view:") is None
        assert parse_summary(None) is None


class TestFormatFenceMeta:
    def test_groups_consecutive_occurrences(self):
        meta = parse_fence_meta("jsx {1,4-6} /data/1-3")
        assert format_fence_meta(meta) == "jsx {1,4-6} /data/1-3"

    def test_full_annotation_survives_reparse(self):
        meta = parse_fence_meta(
            'tsx {2} filename="app.tsx" showLineNumbers /useQuery/ /a\\/b/2,4 copy'
        )
        assert parse_fence_meta(format_fence_meta(meta)) == meta

    def test_empty_meta(self):
        assert format_fence_meta(FenceMeta()) == ""


class TestLargeAnnotations:
    def test_long_occurrence_range(self):
        meta = parse_fence_meta("jsx /x/1-40000")
        assert len(meta.token_highlights) == 40000
        assert meta.token_highlights[-1] == TokenHighlight("x", 40000)

    def test_overlapping_occurrence_lists_keep_first_order(self):
        meta = parse_fence_meta("jsx /x/3,1-4")
        assert [h.occurrence_index for h in meta.token_highlights] == [3, 1, 2, 4]
