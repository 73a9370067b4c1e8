"""Tests for the word set catalogue."""

import pytest

from vnest import SetCatalog, WordSet
from vnest.exceptions import SeedError


class TestBundledSets:

    def test_six_sets(self, sets):
        assert len(sets) == 6
        assert sets.ids() == [1, 2, 3, 4, 5, 6]
        assert sets.max_set_id == 6

    def test_set_contents(self, sets):
        first = sets.get(1)
        assert isinstance(first, WordSet)
        assert first.name == "Set 1"
        assert first.verb_ids == (1, 2, 3)
        assert sets.first_verb_id(1) == 1

    def test_every_verb_in_one_set(self, sets):
        verb_ids = [v for i in sets.ids() for v in sets.get(i).verb_ids]
        assert sorted(verb_ids) == list(range(1, 16))

    def test_lookups(self, sets):
        assert 3 in sets
        assert 7 not in sets
        assert sets.get(7) is None
        assert sets.first_verb_id(7) is None
        assert sets.set_for_verb(12).id == 5
        assert sets.set_for_verb(99) is None


class TestFromDict:

    def test_defaults(self):
        catalog = SetCatalog.from_dict({"sets": [{"id": 2, "verbs": [5]}]})
        assert catalog.get(2) == WordSet(id=2, name="Set 2", level=2, verb_ids=(5,))

    def test_sorted_by_id(self):
        catalog = SetCatalog.from_dict({"sets": [{"id": 3}, {"id": 1}]})
        assert catalog.ids() == [1, 3]

    @pytest.mark.parametrize("data", [
        None,
        [],
        {"sets": {}},
        {"sets": ["x"]},
        {"sets": [{"id": 0}]},
        {"sets": [{"id": True}]},
        {"sets": [{"id": 1, "verbs": ["Syö"]}]},
    ])
    def test_invalid(self, data):
        with pytest.raises(SeedError):
            SetCatalog.from_dict(data)

    def test_duplicate_ids(self):
        with pytest.raises(SeedError, match="Duplicate"):
            SetCatalog.from_dict({"sets": [{"id": 1}, {"id": 1}]})

    def test_empty_catalogue(self):
        catalog = SetCatalog.from_dict({"sets": []})
        assert len(catalog) == 0
        assert catalog.max_set_id == 0


class TestLoad:

    def test_missing_file(self, tmp_path):
        with pytest.raises(SeedError, match="not found"):
            SetCatalog.load(tmp_path)

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "sets.yaml").write_text("sets: [\n  - id: 1\n", encoding="utf-8")
        with pytest.raises(SeedError, match="Invalid YAML"):
            SetCatalog.load(tmp_path)

    def test_custom_dir(self, small_data_dir):
        catalog = SetCatalog.load(small_data_dir)
        assert catalog.ids() == [1, 2, 3]
        assert catalog.get(3).verb_ids == (3, 4)
