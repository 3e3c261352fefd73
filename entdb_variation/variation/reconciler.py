"""
Variation reconciliation.

Aligns the variation records stored for an owner with the current set of
options: one variation per option, in option order. Stored variations are
matched to options by their option reference; missing ones are synthesized
with default attributes; stored ones matching no option are deleted.

Invariants:
    - adjust() returns exactly one variation per option, in option order
    - Each stored variation is used at most once (first match wins)
    - Unmatched stored variations are deleted before adjust() returns
    - Defaults are applied to synthesized variations only
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Sequence

from ..query import Query, Relation, keys_match
from ..registry import resolve_record_class

if TYPE_CHECKING:
    from ..config import VariationConfig
    from ..record import Record

logger = logging.getLogger(__name__)


class Reconciler:
    """Computes the working variation set of one owner.

    Attributes:
        owner: Owner record the variations belong to
        config: Behavior configuration

    Example:
        >>> reconciler = Reconciler(item, config)
        >>> variations = reconciler.adjust(item.translations, reconciler.find_option_models())
    """

    def __init__(self, owner: Record, config: VariationConfig) -> None:
        self.owner = owner
        self.config = config

    def variations_relation(self) -> Relation:
        return self.owner.get_relation(self.config.variations_relation)

    def owner_reference_attribute(self, relation: Relation | None = None) -> str:
        """Variation attribute holding the owner key (first key of the link)."""
        relation = relation or self.variations_relation()
        return next(iter(relation.link))

    def option_query(self) -> Query:
        """Query over all options, narrowed by option_query_filter."""
        option_class = resolve_record_class(self.config.option_entity_type)
        query = option_class.find(self.owner.store)
        option_filter = self.config.option_query_filter
        if option_filter is not None:
            if option_filter.is_callback:
                option_filter.resolve(query)
            else:
                query.and_where(option_filter.resolve())
        return query

    def find_option_models(self) -> list[Record]:
        return self.option_query().all()

    def adjust(self, existing: Sequence[Record], options: Sequence[Record]) -> list[Record]:
        """Match, synthesize and orphan-delete variations.

        Args:
            existing: Variations currently stored for the owner
            options: All options, in the order variations should follow

        Returns:
            One variation per option, in option order
        """
        relation = self.variations_relation()
        option_attribute = self.config.variation_option_reference_attribute
        owner_attribute = self.owner_reference_attribute(relation)

        variations: list[Record] = []
        confirmed: set[int] = set()
        for option in options:
            option_key = option.get_primary_key()
            match = None
            for candidate in existing:
                if id(candidate) in confirmed:
                    continue
                if keys_match(candidate.get_attribute(option_attribute), option_key):
                    match = candidate
                    break

            if match is not None:
                confirmed.add(id(match))
                variations.append(match)
                continue

            variation = relation.record_class(self.owner.store)
            variation.set_attribute(option_attribute, option_key)
            variation.set_attribute(owner_attribute, self.owner.get_primary_key())
            self.fill_defaults(variation, relation)
            variations.append(variation)
            logger.debug(
                "Synthesized variation",
                extra={
                    "owner_type": self.owner.record_type.name,
                    "variation_type": variation.record_type.name,
                    "option_key": option_key,
                },
            )

        for orphan in existing:
            if id(orphan) not in confirmed:
                orphan.delete()
                logger.info(
                    "Deleted orphaned variation",
                    extra={
                        "owner_type": self.owner.record_type.name,
                        "variation_type": orphan.record_type.name,
                        "option_key": orphan.get_attribute(option_attribute),
                    },
                )

        return variations

    def fill_defaults(self, variation: Record, relation: Relation | None = None) -> None:
        """Apply default attributes to a newly synthesized variation."""
        source = self.config.variation_model_default_attributes
        if source is None:
            relation = relation or self.variations_relation()
            for attribute, value in relation.where.items():
                if variation.has_attribute(attribute):
                    variation.set_attribute(attribute, value)
            return

        if source.is_callback:
            source.resolve(variation)
            return

        defaults: dict[str, Any] = dict(source.resolve())
        for attribute, value in defaults.items():
            setattr(variation, attribute, value)
