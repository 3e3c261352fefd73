"""
Unit tests for the owner lifecycle cascade.

Tests cover:
- Validation of every cached variation
- Error merging into the owner
- Saving with owner key assignment
- Save filter deletes and skips
- No-ops while variations are not materialized
"""

import dataclasses

import pytest

from entdb_variation.variation import LifecycleCoordinator

from ..models import Item, ItemTranslation


def lifecycle_for(owner, variations, **changes):
    config = owner.behavior("translations").config
    if changes:
        config = dataclasses.replace(config, **changes)
    return LifecycleCoordinator(owner, config, lambda: variations, lambda: "item_id")


class TestAfterValidate:
    """Tests for LifecycleCoordinator.after_validate."""

    def test_not_materialized_is_noop(self, memory_store):
        """Nothing happens before variations are materialized."""
        item = Item.find_one(memory_store, 1)

        lifecycle_for(item, None).after_validate()

        assert not item.has_errors()

    def test_validates_every_variation(self, memory_store):
        """Every variation is validated, even after one fails."""
        item = Item.find_one(memory_store, 1)
        first = ItemTranslation(memory_store, language_id=1)
        second = ItemTranslation(memory_store, language_id=2)

        lifecycle_for(item, [first, second]).after_validate()

        assert first.has_errors("title")
        assert second.has_errors("title")
        assert item.get_errors("title") == ["title cannot be blank."] * 2
        assert item.get_errors("description") == ["description cannot be blank."] * 2

    def test_valid_variations_add_no_errors(self, memory_store):
        """Valid variations leave the owner's errors alone."""
        item = Item.find_one(memory_store, 1)

        lifecycle_for(item, item.translations).after_validate()

        assert not item.has_errors()


class TestAfterSave:
    """Tests for LifecycleCoordinator.after_save."""

    def test_not_materialized_is_noop(self, memory_store):
        """Nothing is written before variations are materialized."""
        item = Item.find_one(memory_store, 1)

        lifecycle_for(item, None).after_save()

        assert memory_store.count(ItemTranslation) == 3

    def test_assigns_owner_key_and_saves(self, memory_store):
        """Variations get the owner key and are saved."""
        item = Item.find_one(memory_store, 2)
        english = ItemTranslation(memory_store, language_id=1, title="en", description="d")

        lifecycle_for(item, [english]).after_save()

        assert english.item_id == 2
        assert not english.is_new_record
        assert ItemTranslation.find_one(memory_store, (2, 1)).title == "en"

    def test_saves_without_validation(self, memory_store):
        """Invalid variations are saved as they are."""
        item = Item.find_one(memory_store, 2)
        english = ItemTranslation(memory_store, language_id=1)

        lifecycle_for(item, [english]).after_save()

        assert ItemTranslation.find_one(memory_store, (2, 1)) is not None

    def test_filter_deletes_stored_and_skips_new(self, memory_store):
        """Rejected stored variations are deleted, rejected new ones skipped."""
        item = Item.find_one(memory_store, 2)
        english = ItemTranslation(memory_store, language_id=1, title="en", description="d")
        german = item.translations[0]

        lifecycle_for(
            item, [english, german], variation_save_filter=lambda v: False
        ).after_save()

        assert english.is_new_record
        assert ItemTranslation.find(memory_store).and_where({"item_id": 2}).count() == 0

    def test_filter_receives_each_variation(self, memory_store):
        """The filter decides per variation."""
        item = Item.find_one(memory_store, 1)
        translations = item.translations
        translations[0].title = "changed"
        translations[1].title = "changed"

        lifecycle_for(
            item, translations, variation_save_filter=lambda v: v.language_id == 1
        ).after_save()

        assert ItemTranslation.find_one(memory_store, (1, 1)).title == "changed"
        assert ItemTranslation.find_one(memory_store, (1, 2)) is None

    @pytest.mark.parametrize("keep, expected", [(True, 3), (False, 1)])
    def test_literal_filter(self, memory_store, keep, expected):
        """A literal bool filter applies to all variations."""
        item = Item.find_one(memory_store, 1)

        lifecycle_for(item, item.translations, variation_save_filter=keep).after_save()

        assert memory_store.count(ItemTranslation) == expected
