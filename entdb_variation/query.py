"""
Equality queries and relations over a record store.

This module provides the narrow query surface the variation behaviors need:
- normalize_key / keys_match: loose key comparison
- Query: equality-filtered record lookup
- Relation: a Query bound to a primary record through a foreign-key link

Keys read back from different stores may differ in representation
(numeric string vs integer), so every key comparison goes through
normalize_key rather than ==.

Invariants:
    - Conditions are equality mappings only, combined with AND
    - Relation.where holds declared conditions, never the link or on-conditions
    - A relation of an unsaved primary record finds nothing without querying
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from .record import Record
    from .store.base import RecordStore


def normalize_key(value: Any) -> Any:
    """Normalize a key value for loose comparison.

    Integers, integral floats and numeric strings normalize to int;
    other numeric strings to float; bytes are decoded. Composite keys
    (tuples) normalize element-wise.
    """
    if isinstance(value, tuple):
        return tuple(normalize_key(v) for v in value)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return text
        if not math.isfinite(number):
            return text
        return int(number) if number.is_integer() else number
    return value


def keys_match(left: Any, right: Any) -> bool:
    """Whether two key values are equal after normalization."""
    if left is None or right is None:
        return left is None and right is None
    return normalize_key(left) == normalize_key(right)


def condition_matches(condition: Mapping[str, Any], attributes: Mapping[str, Any]) -> bool:
    """Whether every (attribute, value) pair of the condition matches."""
    return all(keys_match(attributes.get(name), value) for name, value in condition.items())


class Query:
    """Equality-filtered lookup of records of one type.

    Attributes:
        record_class: Record class to instantiate
        store: Record store to read from
        conditions: Equality conditions, combined with AND

    Example:
        >>> query = Language.find(store).and_where({"locale": "en"})
        >>> english = query.one()
    """

    def __init__(self, record_class: type[Record], store: RecordStore) -> None:
        self.record_class = record_class
        self.store = store
        self.conditions: list[dict[str, Any]] = []

    @property
    def where(self) -> dict[str, Any]:
        """Declared conditions merged into one mapping."""
        merged: dict[str, Any] = {}
        for condition in self.conditions:
            merged.update(condition)
        return merged

    def and_where(self, condition: Mapping[str, Any]) -> Query:
        """Add an equality condition."""
        self.conditions.append(dict(condition))
        return self

    def matches(self, attributes: Mapping[str, Any]) -> bool:
        return all(condition_matches(c, attributes) for c in self.conditions)

    def all(self) -> list[Record]:
        """Fetch all matching records in storage order."""
        return self.store.find_all(self)

    def one(self) -> Record | None:
        """Fetch the first matching record, if any."""
        records = self.all()
        return records[0] if records else None

    def count(self) -> int:
        return len(self.all())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.record_class.__name__}, where={self.where})"


class Relation(Query):
    """Query of records related to a primary record.

    The link maps attributes of the related records to attributes of the
    primary record, e.g. ``{"item_id": "id"}``. On-conditions narrow the
    relation like where-conditions but are kept apart, so they never end up
    in ``where`` (which seeds attributes of newly created related records).

    Attributes:
        primary_model: Record owning the relation
        link: Related attribute -> primary attribute mapping
        multiple: Whether the relation yields a list (True) or one record
        on_conditions: Additional join-style conditions
    """

    def __init__(
        self,
        record_class: type[Record],
        store: RecordStore,
        primary_model: Record,
        link: Mapping[str, str],
        multiple: bool = True,
    ) -> None:
        super().__init__(record_class, store)
        if not link:
            raise ValueError("Relation link cannot be empty")
        self.primary_model = primary_model
        self.link = dict(link)
        self.multiple = multiple
        self.on_conditions: list[dict[str, Any]] = []

    def and_on_condition(self, condition: Mapping[str, Any]) -> Relation:
        """Add an on-condition."""
        self.on_conditions.append(dict(condition))
        return self

    def link_condition(self) -> dict[str, Any]:
        """Condition matching records linked to the primary record."""
        return {
            related: self.primary_model.get_attribute(primary)
            for related, primary in self.link.items()
        }

    def matches(self, attributes: Mapping[str, Any]) -> bool:
        if not condition_matches(self.link_condition(), attributes):
            return False
        if not all(condition_matches(c, attributes) for c in self.on_conditions):
            return False
        return super().matches(attributes)

    def find_for(self) -> list[Record] | Record | None:
        """Load the related record(s) according to multiplicity."""
        if any(value is None for value in self.link_condition().values()):
            return [] if self.multiple else None
        if self.multiple:
            return self.all()
        return self.one()
