import pytest

from conftest import DUPLICATE_STATE, MALFORMED, NO_EXAMPLES
from pattern_catalog.document_parser import extract_references, parse_document
from pattern_catalog.errors import EmptyCatalogEntryError, MalformedDocumentError


class TestParseDocument:
    def test_title_and_category(self, duplicate_state):
        assert duplicate_state.title == "Duplicate State"
        assert duplicate_state.category_id == 3
        assert duplicate_state.pattern_id == "pattern-003"
        assert duplicate_state.source_path == "duplicate-state.mdx"

    def test_examples(self, duplicate_state):
        first, second = duplicate_state.examples

        assert (first.index, first.label) == (1, "Derived value")
        assert first.example_id == "pattern-003/example-1"
        assert first.avoid_snippet.highlighted_line_numbers == frozenset({2})
        assert first.avoid_snippet.highlighted_tokens == frozenset({"useState"})
        assert first.good_snippet.line_count == 4
        assert first.rationale_avoid == "storing a derived value in state."
        assert first.rationale_good == "compute it during render."
        assert first.diff_source == "literal"
        assert first.diff.summary.added == 1
        assert first.diff.added_lines == ["  const total = sum(items);"]

        assert (second.index, second.label) == (2, "Copied props")
        assert second.diff is None

    def test_intro_notes_and_references(self, duplicate_state):
        assert duplicate_state.introduction.startswith("Keeping the same value")
        assert duplicate_state.notes == "Incorrectly implemented 161 out of 213 times."
        assert duplicate_state.references == ["https://react.dev/learn/choosing-the-state-structure"]

    def test_occurrence_left_for_builder(self, duplicate_state):
        assert duplicate_state.occurrence_stat is None

    def test_missing_title(self):
        with pytest.raises(MalformedDocumentError) as exc_info:
            parse_document(MALFORMED, "broken.md")
        assert exc_info.value.entity_id == "broken.md"

    def test_empty_text(self):
        with pytest.raises(MalformedDocumentError):
            parse_document("")

    def test_no_examples(self):
        with pytest.raises(EmptyCatalogEntryError) as exc_info:
            parse_document(NO_EXAMPLES)
        assert exc_info.value.entity_id == "pattern-009"

    def test_repeated_example_number(self):
        text = (
            "# 2. Repeats\n\n## Examples\n\n"
            "### 1. One\n🛑 Avoid:\n```js\na()\n```\n"
            "### 1. Again\n✅ Good:\n```js\nb()\n```\n"
        )
        with pytest.raises(MalformedDocumentError) as exc_info:
            parse_document(text)
        assert exc_info.value.entity_id == "pattern-002"

    def test_byte_order_mark(self):
        doc = parse_document("\ufeff" + DUPLICATE_STATE)
        assert doc.title == "Duplicate State"
        assert len(doc.examples) == 2

    def test_windows_line_endings(self):
        assert parse_document(DUPLICATE_STATE.replace("\n", "\r\n")).title == "Duplicate State"

    def test_numbered_headings_without_examples_heading(self):
        text = (
            "# 4. Effects For Events\n\nIntro.\n\n"
            "## 1. Submit handler\n\n🛑 Avoid:\n\n```js\nuseEffect(submit)\n```\n\n✅ Good:\n\n```js\nonSubmit(submit)\n```\n\n"
            "## 2. Analytics\n\n🛑 Avoid:\n\n```js\nuseEffect(track)\n```\n"
        )
        doc = parse_document(text)
        assert [e.label for e in doc.examples] == ["Submit handler", "Analytics"]
        assert doc.introduction == "Intro."
        assert doc.examples[1].good_snippet is None

    def test_snippets_directly_under_examples_heading(self):
        text = (
            "# 6. Inline Styles\n\n## Examples\n\n"
            "🛑 Avoid:\n\n```jsx\n<div style={{ color: 'red' }} />\n```\n\n"
            "✅ Good:\n\n```jsx\n<div className=\"error\" />\n```\n\n"
            "## Notes\n\nFound 4 times.\n"
        )
        doc = parse_document(text)
        assert len(doc.examples) == 1
        assert doc.examples[0].index == 1
        assert doc.examples[0].good_snippet is not None
        assert doc.notes == "Found 4 times."

    def test_headings_inside_code_are_ignored(self):
        text = (
            "# 8. Magic Numbers\n\n## Examples\n\n### 1. Timeouts\n\n"
            "🛑 Avoid:\n\n```python\n# 2. not a heading\nsleep(86400)\n```\n\n"
            "✅ Good:\n\n```python\nsleep(ONE_DAY)\n```\n"
        )
        doc = parse_document(text)
        assert len(doc.examples) == 1
        assert doc.examples[0].avoid_snippet.source_lines == ["# 2. not a heading", "sleep(86400)"]

    def test_lower_sections_become_notes(self):
        text = (
            "# 10. Prop Drilling\n\n## Examples\n\n### 1. Deep tree\n\n"
            "🛑 Avoid:\n\n```jsx\n<A user={user} />\n```\n\n"
            "## Why it matters\n\nSee https://example.com/drilling for details.\n\n"
            "## Statistics\n\n7 out of 20 apps.\n"
        )
        doc = parse_document(text)
        assert doc.notes == "See https://example.com/drilling for details.\n\n7 out of 20 apps."
        assert doc.references == ["https://example.com/drilling"]


class TestExtractReferences:
    def test_order_and_duplicates(self):
        text = (
            "Read <https://b.example.org> and [a](https://a.example.org).\n"
            "Again [b](https://b.example.org) and https://c.example.org."
        )
        assert extract_references(text) == [
            "https://b.example.org",
            "https://a.example.org",
            "https://c.example.org",
        ]

    def test_skips_relative_links_and_code(self):
        text = "[intro](/docs/intro) [anchor](#examples)\n\n```js\nfetch('https://api.example.com')\n```\n"
        assert extract_references(text) == []

    def test_keeps_scheme_links(self):
        assert extract_references("[mail](mailto:team@example.com)") == ["mailto:team@example.com"]
