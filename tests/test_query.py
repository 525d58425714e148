import pytest

from pattern_catalog.builder import CatalogBuilder
from pattern_catalog.errors import CatalogNotFoundError
from pattern_catalog.pipeline import run_pipeline
from pattern_catalog.query import CatalogReader


@pytest.fixture
def saved_catalog(tmp_path, docs_dir):
    catalog_path = tmp_path / "output" / "catalog.json"
    builder = CatalogBuilder(catalog_path)
    result = run_pipeline(docs_dir, builder=builder)
    builder.save(result.catalog, result.report)
    return catalog_path, result.catalog


class TestCatalogReader:
    def test_get_pattern(self, saved_catalog):
        path, _ = saved_catalog
        pattern = CatalogReader(path).get_pattern("pattern-003")
        assert pattern.title == "Duplicate State"
        assert pattern.examples[0].avoid_snippet.highlighted_tokens == ["useState"]

    def test_unknown_pattern(self, saved_catalog):
        path, _ = saved_catalog
        with pytest.raises(KeyError):
            CatalogReader(path).get_pattern("pattern-999")

    def test_search(self, saved_catalog):
        reader = CatalogReader(saved_catalog[0])
        assert [p.pattern_id for p in reader.search_patterns(title_contains="KEYS")] == ["pattern-007"]
        assert [p.title for p in reader.search_patterns(category_id=3)] == ["Duplicate State"]
        assert reader.search_patterns(title_contains="state", category_id=7) == []

    def test_list_patterns(self, saved_catalog):
        summary = CatalogReader(saved_catalog[0]).list_patterns()
        assert [s["pattern_id"] for s in summary] == ["pattern-003", "pattern-007"]
        assert summary[0]["percentage"] == pytest.approx(161 / 213)
        assert summary[1]["percentage"] is None

    def test_examples_with_warnings(self, saved_catalog):
        examples = CatalogReader(saved_catalog[0]).examples_with_warnings()
        assert [e.example_id for e in examples] == ["pattern-007/example-1"]
        assert examples[0].warnings[0].kind == "addition_not_computed"

    def test_round_trip_to_catalog(self, saved_catalog):
        path, catalog = saved_catalog
        assert CatalogReader(path).to_catalog() == catalog

    def test_missing_catalog(self, tmp_path):
        reader = CatalogReader(tmp_path / "missing.json")
        with pytest.raises(CatalogNotFoundError):
            reader.list_patterns()
