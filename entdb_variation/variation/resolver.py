"""
Virtual attribute resolution over the default variation.

Owners expose attributes of their default variation (e.g. the English
translation's ``title``) as if they were their own. When the default
variation is missing, or its value is empty, the configured default value
map supplies a fallback.

Resolution order for get(name):
    1. Default variation exists and has the attribute -> its value,
       unless the value is empty and name is mapped
    2. name is mapped -> mapped default (None, owner attribute, callback)
    3. otherwise -> UnknownAttributeError
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from ..errors import UnknownAttributeError
from ..validate import suggest_attributes

if TYPE_CHECKING:
    from ..config import VariationConfig
    from ..record import Record


class AttributeResolver:
    """Get/set fallback chain for virtual attributes of one owner.

    Attributes:
        owner: Owner record
        config: Behavior configuration
        find_default_variation: Callable locating the default variation
    """

    def __init__(
        self,
        owner: Record,
        config: VariationConfig,
        find_default_variation: Callable[[], Record | None],
    ) -> None:
        self.owner = owner
        self.config = config
        self.find_default_variation = find_default_variation

    def is_mapped(self, name: str) -> bool:
        return name in self.config.variation_attribute_default_value_map

    def can_get(self, name: str) -> bool:
        if self.is_mapped(name):
            return True
        variation = self.find_default_variation()
        return variation is not None and variation.has_attribute(name)

    def can_set(self, name: str) -> bool:
        variation = self.find_default_variation()
        return variation is not None and variation.has_attribute(name)

    def get(self, name: str) -> Any:
        """Read a virtual attribute.

        Raises:
            UnknownAttributeError: If name is neither a variation attribute
                nor mapped to a default value
        """
        variation = self.find_default_variation()
        if variation is not None and variation.has_attribute(name):
            value = variation.get_attribute(name)
            if not value and self.is_mapped(name):
                return self.default_value(name)
            return value
        if self.is_mapped(name):
            return self.default_value(name)
        raise self._unknown(name, "get")

    def set(self, name: str, value: Any) -> None:
        """Write a virtual attribute to the default variation.

        Raises:
            UnknownAttributeError: If there is no default variation or it
                lacks the attribute
        """
        variation = self.find_default_variation()
        if variation is not None and variation.has_attribute(name):
            variation.set_attribute(name, value)
            return
        raise self._unknown(name, "set")

    def default_value(self, name: str) -> Any:
        """Resolve a default value map entry."""
        source = self.config.variation_attribute_default_value_map[name]
        if source is None:
            return None
        if source.is_callback:
            return source.resolve(self.owner)
        return getattr(self.owner, source.resolve())

    def _unknown(self, name: str, action: str) -> UnknownAttributeError:
        known = list(self.config.variation_attribute_default_value_map)
        known.extend(self.owner.record_type.get_field_names())
        return UnknownAttributeError(
            name,
            self.owner.record_type.name,
            suggest_attributes(name, known),
            action=action,
        )
