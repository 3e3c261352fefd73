"""
Owner lifecycle cascade for variations.

Validation and persistence of the owner cascade to its variation set, but
only when that set has already been materialized; an owner whose
variations were never touched costs no extra queries.

Invariants:
    - Every variation is validated, even after one fails
    - Variation errors are merged into the owner's errors
    - Variations are saved without re-validation
    - A variation rejected by the save filter is deleted if stored, skipped if new
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from ..config import VariationConfig
    from ..record import Record

logger = logging.getLogger(__name__)


class LifecycleCoordinator:
    """Cascades owner validate/save events to a cached variation set.

    Attributes:
        owner: Owner record
        config: Behavior configuration
        cached_variations: Callable returning the materialized variation set,
            or None when it has not been materialized
        owner_reference_attribute: Callable returning the variation attribute
            that holds the owner key
    """

    def __init__(
        self,
        owner: Record,
        config: VariationConfig,
        cached_variations: Callable[[], list[Record] | None],
        owner_reference_attribute: Callable[[], str],
    ) -> None:
        self.owner = owner
        self.config = config
        self.cached_variations = cached_variations
        self.owner_reference_attribute = owner_reference_attribute

    def after_validate(self) -> None:
        """Validate every cached variation, merging errors into the owner."""
        variations = self.cached_variations()
        if not variations:
            return

        for variation in variations:
            if not variation.validate():
                self.owner.add_errors(variation.errors)

    def after_save(self) -> None:
        """Persist or delete every cached variation after owner insert/update."""
        variations = self.cached_variations()
        if not variations:
            return

        owner_attribute = self.owner_reference_attribute()
        owner_key = self.owner.get_primary_key()
        save_filter = self.config.variation_save_filter

        saved = deleted = 0
        for variation in variations:
            variation.set_attribute(owner_attribute, owner_key)
            if save_filter is None or save_filter.resolve(variation):
                variation.save(validate=False)
                saved += 1
            elif not variation.is_new_record:
                variation.delete()
                deleted += 1

        logger.debug(
            "Saved variations",
            extra={
                "owner_type": self.owner.record_type.name,
                "owner_key": owner_key,
                "saved": saved,
                "deleted": deleted,
            },
        )
