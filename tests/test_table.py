"""Tests for tables and $id indexing."""

import pytest

from popvars.errors import ResolutionError
from popvars.table import ID_FIELD, OUTFILE_FIELD, SpecialField, Table


@pytest.fixture
def countries():
    return Table(
        "country",
        [
            {"$id": "DE", "name": "Germany"},
            {"$id": "FR", "name": "France"},
            {"$id": "DE", "name": "Duplicate"},
        ],
    )


class TestTable:
    def test_special_fields(self):
        assert ID_FIELD == "$id"
        assert OUTFILE_FIELD == "$outfile"
        assert SpecialField("$id") is SpecialField.ID

    def test_len_and_iter(self, countries):
        assert len(countries) == 3
        assert [r["name"] for r in countries] == ["Germany", "France", "Duplicate"]

    def test_fields_in_first_seen_order(self):
        table = Table("t", [{"a": "1"}, {"a": "2", "b": "3"}])
        assert table.fields == ["a", "b"]

    def test_repr(self, countries):
        assert repr(countries) == "Table('country', 3 records)"

    def test_records_are_copied(self):
        records = [{"$id": "1"}]
        table = Table("t", records)
        records.append({"$id": "2"})
        assert len(table) == 1


class TestIndex:
    def test_index(self, countries):
        assert countries.index("FR") == {"$id": "FR", "name": "France"}

    def test_missing_key(self, countries):
        assert countries.index("IT") is None

    def test_duplicate_id_resolves_to_first(self, countries):
        assert countries.index("DE")["name"] == "Germany"

    def test_require(self, countries):
        assert countries.require("DE")["name"] == "Germany"

    def test_require_names_table_and_key(self, countries):
        with pytest.raises(ResolutionError, match=r"expected to find a `country` with \$id=IT"):
            countries.require("IT")

    def test_missing_id_fails_when_indexed(self):
        table = Table("city", [{"$id": "1"}, {"name": "no id"}])
        with pytest.raises(ResolutionError, match=r"Invalid table `city`: record 2 has no \$id field"):
            table.index("1")

    def test_missing_id_is_fine_until_indexed(self):
        table = Table("city", [{"name": "no id"}])
        assert len(table) == 1

    def test_empty_table_is_never_checked(self):
        assert Table("empty").index("anything") is None
