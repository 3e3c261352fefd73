"""
Unit tests for virtual attribute resolution.

Tests cover:
- Reading through the default variation
- Default value map fallbacks (None, owner attribute, callback)
- Writing through the default variation
- Unknown attributes
"""

import pytest

from entdb_variation import UnknownAttributeError
from entdb_variation.variation import AttributeResolver

from ..models import Item, ItemTranslation


@pytest.fixture
def owner():
    return Item(name="Widget")


def resolver_for(owner, variation):
    return AttributeResolver(owner, owner.behavior("translations").config, lambda: variation)


class TestGet:
    """Tests for AttributeResolver.get."""

    def test_reads_variation_attribute(self, owner):
        """Variation attributes are read from the default variation."""
        resolver = resolver_for(owner, ItemTranslation(title="Gadget", description="text"))

        assert resolver.get("title") == "Gadget"
        assert resolver.get("description") == "text"

    def test_empty_mapped_value_falls_back_to_owner_attribute(self, owner):
        """Empty values of mapped attributes use the mapped default."""
        resolver = resolver_for(owner, ItemTranslation(title=""))

        assert resolver.get("title") == "Widget"

    def test_empty_unmapped_value_is_returned(self, owner):
        """Empty values of unmapped attributes are returned unchanged."""
        resolver = resolver_for(owner, ItemTranslation(description=""))

        assert resolver.get("description") == ""

    def test_no_variation_uses_mapped_defaults(self, owner):
        """Without a default variation, mapped attributes still resolve."""
        resolver = resolver_for(owner, None)

        assert resolver.get("title") == "Widget"
        assert resolver.get("brief") is None
        assert resolver.get("summary") == "default"

    def test_mapped_attribute_missing_on_variation(self, owner):
        """Mapped names the variation lacks resolve to their default."""
        resolver = resolver_for(owner, ItemTranslation(title="Gadget"))

        assert resolver.get("summary") == "default"

    def test_no_variation_unmapped_raises(self, owner):
        """Unmapped attributes need a default variation."""
        resolver = resolver_for(owner, None)

        with pytest.raises(UnknownAttributeError) as exc_info:
            resolver.get("description")

        assert "Getting unknown attribute 'description' of 'Item'" in str(exc_info.value)

    def test_unknown_attribute_raises(self, owner):
        """Names unknown to the variation and the map raise."""
        resolver = resolver_for(owner, ItemTranslation(title="Gadget"))

        with pytest.raises(UnknownAttributeError) as exc_info:
            resolver.get("titel")

        assert "title" in exc_info.value.suggestions


class TestSet:
    """Tests for AttributeResolver.set."""

    def test_writes_variation_attribute(self, owner):
        """Writes go to the default variation."""
        translation = ItemTranslation(title="Gadget")
        resolver = resolver_for(owner, translation)

        resolver.set("title", "Gizmo")

        assert translation.title == "Gizmo"

    def test_no_variation_raises(self, owner):
        """Writes need a default variation, even for mapped names."""
        resolver = resolver_for(owner, None)

        with pytest.raises(UnknownAttributeError, match="Setting unknown attribute 'title'"):
            resolver.set("title", "Gizmo")

    def test_attribute_missing_on_variation_raises(self, owner):
        """Mapped names the variation lacks cannot be written."""
        resolver = resolver_for(owner, ItemTranslation())

        with pytest.raises(UnknownAttributeError):
            resolver.set("summary", "text")


class TestCanGetCanSet:
    """Tests for can_get / can_set."""

    def test_with_variation(self, owner):
        resolver = resolver_for(owner, ItemTranslation())

        assert resolver.can_get("description")
        assert resolver.can_get("summary")
        assert resolver.can_set("description")
        assert not resolver.can_set("summary")
        assert not resolver.can_get("missing")

    def test_without_variation(self, owner):
        resolver = resolver_for(owner, None)

        assert resolver.can_get("title")
        assert not resolver.can_get("description")
        assert not resolver.can_set("title")
