"""
Owner records carrying variation behaviors.

VariationOwner wires one VariationCoordinator per configured behavior into
a record instance: unknown attribute access falls through to the
coordinators, and the validate/insert/update hooks call into them.

Example:
    >>> class Item(VariationOwner):
    ...     record_type = RecordTypeDef(name="Item", fields=(field("id", "int"), field("name", "str")))
    ...     variation_behaviors = {
    ...         "translations": VariationConfig(
    ...             variations_relation="translations",
    ...             default_variation_relation="default_translation",
    ...             variation_option_reference_attribute="language_id",
    ...             option_entity_type=Language,
    ...             default_variation_option_reference=1,
    ...             variation_attribute_default_value_map={"title": "name"},
    ...         ),
    ...     }
    ...
    ...     @relation
    ...     def translations(self):
    ...         return self.has_many(ItemTranslation, {"item_id": "id"})
    ...
    ...     @relation
    ...     def default_translation(self):
    ...         return self.behavior("translations").has_default_variation_relation()
"""

from __future__ import annotations

from typing import Any, ClassVar, Iterator, Mapping

from ..config import VariationConfig
from ..record import Record
from .behavior import VariationCoordinator


class VariationOwner(Record):
    """Record with variation behaviors.

    Attributes:
        variation_behaviors: Behavior name -> configuration, declared on the class
    """

    variation_behaviors: ClassVar[Mapping[str, VariationConfig]] = {}

    def __init__(self, store: Any = None, **attributes: Any) -> None:
        self._behaviors: dict[str, VariationCoordinator] = {
            name: VariationCoordinator(self, config, name)
            for name, config in self.variation_behaviors.items()
        }
        super().__init__(store, **attributes)

    def behavior(self, name: str) -> VariationCoordinator:
        """Variation behavior by name.

        Raises:
            KeyError: If no behavior has that name
        """
        try:
            return self._behaviors[name]
        except KeyError:
            raise KeyError(
                f"{self.record_type.name} has no variation behavior '{name}'"
            ) from None

    def behaviors(self) -> Iterator[VariationCoordinator]:
        yield from self._behaviors.values()

    def _get_fallback(self, name: str) -> Any:
        for coordinator in self._behaviors.values():
            if coordinator.can_get(name):
                return coordinator.get(name)
        return super()._get_fallback(name)

    def _set_fallback(self, name: str, value: Any) -> None:
        for coordinator in self._behaviors.values():
            if coordinator.can_set(name):
                coordinator.set(name, value)
                return
        super()._set_fallback(name, value)

    def can_get_attribute(self, name: str) -> bool:
        """Whether name reads as a native or variation-backed attribute."""
        if self.has_attribute(name):
            return True
        return any(coordinator.can_get(name) for coordinator in self._behaviors.values())

    def can_set_attribute(self, name: str) -> bool:
        """Whether name writes as a native or variation-backed attribute."""
        if self.has_attribute(name):
            return True
        return any(coordinator.can_set(name) for coordinator in self._behaviors.values())

    def after_validate(self) -> None:
        super().after_validate()
        for coordinator in self._behaviors.values():
            coordinator.after_validate()

    def after_insert(self) -> None:
        super().after_insert()
        for coordinator in self._behaviors.values():
            coordinator.after_save()

    def after_update(self) -> None:
        super().after_update()
        for coordinator in self._behaviors.values():
            coordinator.after_save()
