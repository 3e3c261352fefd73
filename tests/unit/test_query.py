"""
Unit tests for queries and relations.

Tests cover:
- Loose key normalization and matching
- Query conditions
- Relation link, on-conditions and multiplicity
"""

import pytest

from entdb_variation import Query, Relation, keys_match, normalize_key
from entdb_variation.query import condition_matches

from ..models import Item, ItemTranslation, Language


class TestKeyMatching:
    """Tests for normalize_key and keys_match."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (1, 1),
            ("1", 1),
            (" 7 ", 7),
            (2.0, 2),
            ("2.0", 2),
            ("2.5", 2.5),
            (b"3", 3),
            (True, 1),
            ("en", "en"),
            ("nan", "nan"),
            ((1, "2"), (1, 2)),
        ],
    )
    def test_normalize_key(self, value, expected):
        """Numeric representations collapse to one value."""
        assert normalize_key(value) == expected

    def test_string_and_integer_match(self):
        """String and integer forms of a key match."""
        assert keys_match("1", 1)
        assert keys_match(1, 1.0)
        assert not keys_match("1", 2)

    def test_none_only_matches_none(self):
        """None never matches a value, not even 0 or empty."""
        assert keys_match(None, None)
        assert not keys_match(None, 0)
        assert not keys_match("", None)

    def test_condition_matches(self):
        """Every pair of the condition must match."""
        attributes = {"item_id": 1, "language_id": "2"}

        assert condition_matches({"item_id": "1", "language_id": 2}, attributes)
        assert not condition_matches({"item_id": 1, "language_id": 1}, attributes)
        assert condition_matches({}, attributes)


class TestQuery:
    """Tests for Query."""

    def test_where_merges_conditions(self):
        """where merges all conditions, later ones win."""
        query = Query(Language, store=None)
        query.and_where({"locale": "en"}).and_where({"name": "English", "locale": "de"})

        assert query.where == {"locale": "de", "name": "English"}

    def test_matches_requires_all_conditions(self):
        """Conditions combine with AND."""
        query = Query(Language, store=None).and_where({"locale": "en"}).and_where({"id": 1})

        assert query.matches({"id": "1", "locale": "en"})
        assert not query.matches({"id": 2, "locale": "en"})

    def test_all_one_count(self, memory_store):
        """Query delegates to the store."""
        query = Language.find(memory_store)

        assert [language.name for language in query.all()] == ["English", "German"]
        assert query.one().name == "English"
        assert query.count() == 2

    def test_one_without_match(self, memory_store):
        """one() returns None when nothing matches."""
        assert Language.find(memory_store).and_where({"locale": "fr"}).one() is None

    def test_repr(self):
        """repr shows type and conditions."""
        query = Query(Language, store=None).and_where({"id": 1})

        assert repr(query) == "Query(Language, where={'id': 1})"


class TestRelation:
    """Tests for Relation."""

    def test_empty_link_raises(self, memory_store):
        """A relation needs a link."""
        item = Item.find_one(memory_store, 1)

        with pytest.raises(ValueError, match="link cannot be empty"):
            Relation(ItemTranslation, memory_store, item, {})

    def test_link_condition(self, memory_store):
        """Link condition reads the primary record's attributes."""
        item = Item.find_one(memory_store, 1)
        relation = item.get_relation("translations")

        assert relation.link_condition() == {"item_id": 1}

    def test_find_for_multiple(self, memory_store):
        """has-many relations return lists."""
        item = Item.find_one(memory_store, 1)

        translations = item.get_relation("translations").find_for()

        assert [t.language_id for t in translations] == [1, 2]

    def test_find_for_single(self, memory_store):
        """has-one relations return the first match."""
        item = Item.find_one(memory_store, 1)
        relation = item.has_one(ItemTranslation, {"item_id": "id"}).and_where({"language_id": 2})

        assert relation.find_for().title == "item1-de"

    def test_new_primary_finds_nothing(self, memory_store):
        """An unsaved primary record yields an empty result without querying."""
        item = Item(memory_store, name="new")

        assert item.get_relation("translations").find_for() == []
        assert item.has_one(ItemTranslation, {"item_id": "id"}).find_for() is None

    def test_on_conditions_stay_out_of_where(self, memory_store):
        """On-conditions narrow results but are not part of where."""
        item = Item.find_one(memory_store, 1)
        relation = item.get_relation("translations").and_on_condition({"language_id": 2})

        assert relation.where == {}
        assert [t.language_id for t in relation.find_for()] == [2]
        assert not relation.matches({"item_id": 1, "language_id": 1})
