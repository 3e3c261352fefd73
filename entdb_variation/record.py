"""
Record model for entdb-variation.

A Record is one row of a record type: declared attributes, validation
errors, persistence state and lazily loaded relations. It is the smallest
entity model the variation behaviors need and is deliberately not an ORM.

Attribute access is two-tier:
    1. Declared fields of ``record_type`` are read and written directly.
    2. Any other name falls through to ``_get_fallback`` / ``_set_fallback``,
       which raise UnknownAttributeError here and are extended by owners
       that carry variation behaviors.

Invariants:
    - A record is new until it has been inserted or loaded from a store
    - old_primary_key is the key the record is stored under
    - Relations are loaded at most once per instance unless re-populated
    - Lifecycle hooks fire after validation and after each insert/update/delete

Example:
    >>> class Language(Record):
    ...     record_type = RecordTypeDef(
    ...         name="Language",
    ...         fields=(field("id", "int"), field("name", "str")),
    ...     )
    >>> english = Language(store, name="English")
    >>> english.save()
    True
"""

from __future__ import annotations

import logging
from typing import Any, Callable, ClassVar, Mapping

from .errors import StorageError, UnknownAttributeError
from .query import Query, Relation
from .schema import RecordTypeDef
from .validate import suggest_attributes, validate_attributes

logger = logging.getLogger(__name__)


class relation:
    """Declares a named relation on a record class.

    The decorated method builds a fresh Relation. Reading the attribute
    loads and caches the related record(s); assigning it populates the
    cache directly.

    Example:
        >>> class Item(Record):
        ...     @relation
        ...     def translations(self):
        ...         return self.has_many(ItemTranslation, {"item_id": "id"})
    """

    def __init__(self, factory: Callable[[Any], Relation]) -> None:
        self.factory = factory
        self.name = factory.__name__
        self.__doc__ = factory.__doc__

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Record | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return instance.get_related(self.name)

    def __set__(self, instance: Record, value: Any) -> None:
        instance.populate_relation(self.name, value)

    def build(self, instance: Record) -> Relation:
        """Build a fresh relation query for the instance."""
        return self.factory(instance)


class Record:
    """Base class for stored records.

    Subclasses declare ``record_type``. Instances are bound to the store
    they were loaded from, or to the store passed on construction.

    Attributes:
        record_type: Declared fields and primary key
        store: Record store the instance reads from and writes to
        is_new_record: Whether the record has not been stored yet
    """

    record_type: ClassVar[RecordTypeDef]

    def __init__(self, store: Any = None, **attributes: Any) -> None:
        self._store = store
        self._attributes: dict[str, Any] = self.record_type.defaults()
        self._old_attributes: dict[str, Any] | None = None
        self._errors: dict[str, list[str]] = {}
        self._related: dict[str, Any] = {}
        for name, value in attributes.items():
            self.set_attribute(name, value)

    @classmethod
    def instantiate(cls, store: Any, attributes: Mapping[str, Any]) -> Record:
        """Create an instance for a stored row."""
        record = cls(store)
        for name, value in attributes.items():
            if record.has_attribute(name):
                record._attributes[name] = value
        record._old_attributes = dict(record._attributes)
        return record

    @classmethod
    def find(cls, store: Any) -> Query:
        """Start a query over records of this type."""
        return Query(cls, store)

    @classmethod
    def find_one(cls, store: Any, primary_key: Any) -> Record | None:
        """Find a record by primary key value (tuple for composite keys)."""
        names = cls.record_type.primary_key
        values = primary_key if isinstance(primary_key, tuple) else (primary_key,)
        if len(values) != len(names):
            raise ValueError(
                f"{cls.record_type.name} primary key has {len(names)} column(s), got {len(values)}"
            )
        return cls.find(store).and_where(dict(zip(names, values))).one()

    # Attributes

    @property
    def store(self) -> Any:
        return self._store

    @property
    def attributes(self) -> dict[str, Any]:
        """Copy of the current attribute values."""
        return dict(self._attributes)

    @property
    def is_new_record(self) -> bool:
        return self._old_attributes is None

    def has_attribute(self, name: str) -> bool:
        return self.record_type.has_field(name)

    def get_attribute(self, name: str) -> Any:
        return self._attributes.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        if not self.has_attribute(name):
            raise UnknownAttributeError(
                name,
                self.record_type.name,
                suggest_attributes(name, self.record_type.get_field_names()),
                action="set",
            )
        self._attributes[name] = value

    def get_primary_key(self) -> Any:
        """Primary key value, or a tuple of values for composite keys."""
        values = tuple(self._attributes.get(name) for name in self.record_type.primary_key)
        return values if self.record_type.is_composite_key else values[0]

    @property
    def old_primary_key(self) -> Any:
        """Primary key the record is stored under (None for new records)."""
        if self._old_attributes is None:
            return None
        values = tuple(self._old_attributes.get(name) for name in self.record_type.primary_key)
        return values if self.record_type.is_composite_key else values[0]

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if self.record_type.has_field(name):
            return self._attributes.get(name)
        return self._get_fallback(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or hasattr(type(self), name):
            object.__setattr__(self, name, value)
        elif self.record_type.has_field(name):
            self._attributes[name] = value
        else:
            self._set_fallback(name, value)

    def _get_fallback(self, name: str) -> Any:
        raise UnknownAttributeError(
            name,
            self.record_type.name,
            suggest_attributes(name, self.record_type.get_field_names()),
        )

    def _set_fallback(self, name: str, value: Any) -> None:
        raise UnknownAttributeError(
            name,
            self.record_type.name,
            suggest_attributes(name, self.record_type.get_field_names()),
            action="set",
        )

    # Errors

    @property
    def errors(self) -> dict[str, list[str]]:
        return {name: list(messages) for name, messages in self._errors.items()}

    def add_error(self, attribute: str, message: str) -> None:
        self._errors.setdefault(attribute, []).append(message)

    def add_errors(self, errors: Mapping[str, list[str]]) -> None:
        for attribute, messages in errors.items():
            for message in messages:
                self.add_error(attribute, message)

    def has_errors(self, attribute: str | None = None) -> bool:
        if attribute is None:
            return bool(self._errors)
        return bool(self._errors.get(attribute))

    def get_errors(self, attribute: str | None = None) -> list[str]:
        if attribute is None:
            return [message for messages in self._errors.values() for message in messages]
        return list(self._errors.get(attribute, []))

    def clear_errors(self) -> None:
        self._errors = {}

    # Lifecycle

    def validate(self) -> bool:
        """Validate declared fields, then fire after_validate.

        Returns:
            True if the record has no errors afterwards
        """
        self.clear_errors()
        _, errors = validate_attributes(self.record_type, self._attributes)
        self.add_errors(errors)
        self.after_validate()
        return not self.has_errors()

    def save(self, validate: bool = True) -> bool:
        """Insert or update the record.

        Args:
            validate: Whether to validate before writing

        Returns:
            False if validation failed, True once written

        Raises:
            StorageError: If the store rejects the write
        """
        if validate and not self.validate():
            logger.debug(
                "Record not saved: validation failed",
                extra={"record_type": self.record_type.name, "errors": self.errors},
            )
            return False

        store = self._require_store()
        if self.is_new_record:
            store.insert(self)
            self._old_attributes = dict(self._attributes)
            # Relations loaded before insert were resolved without a key
            self._related = {}
            self.after_insert()
        else:
            store.update(self)
            self._old_attributes = dict(self._attributes)
            self.after_update()
        return True

    def delete(self) -> bool:
        """Delete the stored record.

        Returns:
            True if a stored row was removed
        """
        if self.is_new_record:
            return False
        deleted = self._require_store().delete(self)
        self._old_attributes = None
        if deleted:
            self.after_delete()
        return deleted

    def refresh(self) -> bool:
        """Reload attributes from the store.

        Returns:
            False if the record is new or no longer stored
        """
        if self.is_new_record:
            return False
        fresh = type(self).find_one(self._require_store(), self.old_primary_key)
        if fresh is None:
            return False
        self._attributes = fresh.attributes
        self._old_attributes = fresh.attributes
        self._related = {}
        return True

    def after_validate(self) -> None:
        """Called at the end of validate(), before errors are checked."""

    def after_insert(self) -> None:
        """Called after the record has been inserted."""

    def after_update(self) -> None:
        """Called after the record has been updated."""

    def after_delete(self) -> None:
        """Called after the record has been deleted."""

    def _require_store(self) -> Any:
        if self._store is None:
            raise StorageError(
                f"{self.record_type.name} record is not bound to a store",
                type_name=self.record_type.name,
            )
        return self._store

    # Relations

    def has_many(self, record_class: type[Record], link: Mapping[str, str]) -> Relation:
        """Declare a one-to-many relation."""
        return Relation(record_class, self._store, self, link, multiple=True)

    def has_one(self, record_class: type[Record], link: Mapping[str, str]) -> Relation:
        """Declare a one-to-one relation."""
        return Relation(record_class, self._store, self, link, multiple=False)

    def get_relation(self, name: str) -> Relation:
        """Build a fresh relation query by relation name."""
        descriptor = getattr(type(self), name, None)
        if not isinstance(descriptor, relation):
            raise UnknownAttributeError(name, self.record_type.name)
        return descriptor.build(self)

    def get_related(self, name: str) -> Any:
        """Related record(s), loaded on first access."""
        if name not in self._related:
            self._related[name] = self.get_relation(name).find_for()
        return self._related[name]

    def populate_relation(self, name: str, value: Any) -> None:
        self._related[name] = value

    def is_relation_populated(self, name: str) -> bool:
        return name in self._related

    def reset_relation(self, name: str) -> None:
        """Drop a loaded relation so the next access reloads it."""
        self._related.pop(name, None)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._attributes!r})"
