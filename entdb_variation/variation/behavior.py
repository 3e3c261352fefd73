"""
Variation behavior of one owner instance.

VariationCoordinator composes the Reconciler, AttributeResolver and
LifecycleCoordinator for a single owner record and holds the per-instance
caches they share: the materialized variation set and, through the owner's
relation cache, the default variation.

Invariants:
    - The variation set is materialized at most once per instance, unless
      replaced with set_variation_models()
    - Orphaned variations are deleted before the set is cached or returned
    - The default variation is the set member for the default option once
      the set is materialized
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any, Sequence

from ..errors import ConfigurationError
from ..query import Relation, keys_match
from .lifecycle import LifecycleCoordinator
from .reconciler import Reconciler
from .resolver import AttributeResolver

if TYPE_CHECKING:
    from ..config import VariationConfig
    from ..record import Record

logger = logging.getLogger(__name__)


class VariationCoordinator:
    """Variation operations of one owner instance.

    Attributes:
        owner: Owner record
        name: Behavior name on the owner class
        config: Behavior configuration
        reconciler: Variation set reconciliation
        resolver: Virtual attribute resolution
        lifecycle: Validate/save cascade

    Example:
        >>> behavior = item.behavior("translations")
        >>> for translation in behavior.get_variation_models():
        ...     translation.title = "..."
        >>> item.save()
    """

    def __init__(self, owner: Record, config: VariationConfig, name: str | None = None) -> None:
        self.owner = owner
        self.name = name
        self._config = config
        self._variation_models: list[Record] | None = None
        self._build()

    def _build(self) -> None:
        self.reconciler = Reconciler(self.owner, self._config)
        self.resolver = AttributeResolver(
            self.owner, self._config, self.get_default_variation_model
        )
        self.lifecycle = LifecycleCoordinator(
            self.owner,
            self._config,
            lambda: self._variation_models,
            self.reconciler.owner_reference_attribute,
        )

    @property
    def config(self) -> VariationConfig:
        return self._config

    def configure(self, **changes: Any) -> None:
        """Replace options of this instance's configuration.

        Raises:
            ConfigurationError: If the resulting configuration is invalid
        """
        self._config = dataclasses.replace(self._config, **changes)
        self._build()

    # Variation set

    @property
    def is_variation_models_initialized(self) -> bool:
        return self._variation_models is not None

    def get_variation_models(self) -> list[Record]:
        """All variations, one per option, creating missing ones.

        Returns:
            The cached variation set (same list on repeated calls)
        """
        if self._variation_models is not None:
            return self._variation_models

        existing = list(self.owner.get_related(self._config.variations_relation) or [])
        existing = self._share_default_variation(existing)
        options = self.reconciler.find_option_models()
        self._variation_models = self.reconciler.adjust(existing, options)

        default_relation = self._config.default_variation_relation
        if (
            default_relation is not None
            and self.owner.is_relation_populated(default_relation)
            and self.owner.get_related(default_relation) is None
        ):
            # Let a synthesized default variation be found in the new set
            self.owner.reset_relation(default_relation)

        logger.debug(
            "Materialized variations",
            extra={
                "owner_type": self.owner.record_type.name,
                "behavior": self.name,
                "options": len(options),
                "stored": len(existing),
            },
        )
        return self._variation_models

    def set_variation_models(self, models: Sequence[Record] | None) -> VariationCoordinator:
        """Replace the cached variation set (None resets it).

        Loaded variations are dropped too, so the next reconciliation reads
        them from storage.
        """
        self._variation_models = list(models) if models is not None else None
        self.owner.reset_relation(self._config.variations_relation)
        default_relation = self._config.default_variation_relation
        if default_relation is not None:
            self.owner.reset_relation(default_relation)
        return self

    def get_variation_model(self, option_key: Any) -> Record | None:
        """Variation for an option primary key; materializes the full set."""
        attribute = self._config.variation_option_reference_attribute
        for variation in self.get_variation_models():
            if keys_match(variation.get_attribute(attribute), option_key):
                return variation
        return None

    def _share_default_variation(self, existing: list[Record]) -> list[Record]:
        """Use an already loaded default variation instance in place of its stored twin."""
        default_relation = self._config.default_variation_relation
        if default_relation is None or not self.owner.is_relation_populated(default_relation):
            return existing
        default = self.owner.get_related(default_relation)
        if default is None or default.is_new_record:
            return existing
        return [
            default if keys_match(record.old_primary_key, default.old_primary_key) else record
            for record in existing
        ]

    # Default variation

    def get_default_variation_option_reference(self) -> Any:
        """Option primary key of the default variation.

        Raises:
            ConfigurationError: If default_variation_option_reference is not set
        """
        source = self._config.default_variation_option_reference
        if source is None:
            raise ConfigurationError(
                f'"{type(self).__name__}.default_variation_option_reference" must be set.',
                setting="default_variation_option_reference",
            )
        if source.is_callback:
            return source.resolve(self.owner)
        return source.resolve()

    def has_default_variation_relation(self) -> Relation:
        """Single-record relation to the default variation.

        Built from the variations relation, narrowed to the default option.
        """
        relation = self.owner.get_relation(self._config.variations_relation)
        relation.multiple = False
        condition = {
            self._config.variation_option_reference_attribute: (
                self.get_default_variation_option_reference()
            )
        }

        and_on_condition = getattr(relation, "and_on_condition", None)
        if and_on_condition is None:
            relation.and_where(condition)
        else:
            try:
                and_on_condition(condition)
            except NotImplementedError:
                # Relation types without join semantics narrow with where
                relation.and_where(condition)
        return relation

    def get_default_variation_model(self) -> Record | None:
        """The default variation, or None.

        Lookup order: populated default relation, materialized variation set,
        loaded variations relation, then a query via the default relation.
        """
        default_relation = self._config.default_variation_relation
        if default_relation is None:
            return None

        owner = self.owner
        if owner.is_relation_populated(default_relation):
            return owner.get_related(default_relation)

        if self._variation_models is not None:
            candidates = self._variation_models
        elif owner.is_relation_populated(self._config.variations_relation):
            candidates = owner.get_related(self._config.variations_relation) or []
        else:
            return owner.get_related(default_relation)

        reference = self.get_default_variation_option_reference()
        attribute = self._config.variation_option_reference_attribute
        for variation in candidates:
            if keys_match(variation.get_attribute(attribute), reference):
                owner.populate_relation(default_relation, variation)
                return variation
        return None

    # Attribute access

    def can_get(self, name: str) -> bool:
        return self.resolver.can_get(name)

    def can_set(self, name: str) -> bool:
        return self.resolver.can_set(name)

    def get(self, name: str) -> Any:
        return self.resolver.get(name)

    def set(self, name: str, value: Any) -> None:
        self.resolver.set(name, value)

    # Lifecycle

    def after_validate(self) -> None:
        self.lifecycle.after_validate()

    def after_save(self) -> None:
        self.lifecycle.after_save()
