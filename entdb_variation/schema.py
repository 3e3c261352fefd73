"""
Schema types for entdb-variation records.

This module provides type definitions for the record model:
- RecordTypeDef: Definition of a record type (owner, option or variation)
- FieldDef: Individual field definition

A record type declares the attributes a record may hold. Anything not
declared is not a native attribute and falls through to the variation
behaviors attached to the owner.

Invariants:
    - Field names are unique within a record type
    - Primary key fields are declared fields
    - enum_values are required for ENUM fields

Example:
    >>> ItemTranslation = RecordTypeDef(
    ...     name="ItemTranslation",
    ...     fields=(
    ...         field("item_id", "int"),
    ...         field("language_id", "int", required=True),
    ...         field("title", "str", required=True),
    ...     ),
    ...     primary_key=("item_id", "language_id"),
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any


class FieldKind(Enum):
    """Supported field types."""

    STRING = "str"
    INTEGER = "int"
    FLOAT = "float"
    BOOLEAN = "bool"
    JSON = "json"
    ENUM = "enum"
    LIST_STRING = "list_str"
    LIST_INT = "list_int"

    @classmethod
    def from_str(cls, value: str) -> FieldKind:
        """Convert string to FieldKind."""
        for kind in cls:
            if kind.value == value:
                return kind
        raise ValueError(f"Invalid field kind: {value}")


@dataclass(frozen=True)
class FieldDef:
    """Field definition within a record type.

    Attributes:
        name: Attribute name
        kind: Data type
        required: Whether a non-empty value is required
        default: Default value for new records
        enum_values: Valid values for enum type
        description: Documentation
    """

    name: str
    kind: FieldKind
    required: bool = False
    default: Any = None
    enum_values: tuple[str, ...] | None = None
    description: str = ""

    def __post_init__(self) -> None:
        """Validate field definition."""
        if not self.name:
            raise ValueError("Field name cannot be empty")
        if self.kind == FieldKind.ENUM and not self.enum_values:
            raise ValueError(f"enum_values required for ENUM field '{self.name}'")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "name": self.name,
            "kind": self.kind.value,
        }
        if self.required:
            result["required"] = True
        if self.default is not None:
            result["default"] = self.default
        if self.enum_values:
            result["enum_values"] = list(self.enum_values)
        if self.description:
            result["description"] = self.description
        return result


def field(
    name: str,
    kind: str | FieldKind,
    *,
    required: bool = False,
    default: Any = None,
    enum_values: tuple[str, ...] | None = None,
    description: str = "",
) -> FieldDef:
    """Convenience function to create a FieldDef.

    Example:
        >>> title = field("title", "str", required=True)
        >>> censor_type = field("censor_type", "enum", enum_values=("censored", "no"))
    """
    if isinstance(kind, str):
        kind = FieldKind.from_str(kind)
    return FieldDef(
        name=name,
        kind=kind,
        required=required,
        default=default,
        enum_values=enum_values,
        description=description,
    )


@dataclass(frozen=True)
class RecordTypeDef:
    """Definition of a record type.

    Attributes:
        name: Type name, also the storage table name
        fields: Tuple of field definitions
        primary_key: Names of the primary key fields
        auto_increment: Whether a single-column integer key is generated on insert
        description: Documentation
    """

    name: str
    fields: tuple[FieldDef, ...] = dataclass_field(default_factory=tuple)
    primary_key: tuple[str, ...] = ("id",)
    auto_increment: bool = True
    description: str = ""

    def __post_init__(self) -> None:
        """Validate record type definition."""
        if not self.name:
            raise ValueError("Record type name cannot be empty")
        if not self.primary_key:
            raise ValueError(f"Record type '{self.name}' needs a primary key")

        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate field name in record type '{self.name}'")

        missing = set(self.primary_key) - set(names)
        if missing:
            raise ValueError(
                f"Primary key fields {sorted(missing)} are not declared in '{self.name}'"
            )

    @property
    def is_composite_key(self) -> bool:
        """Whether the primary key spans more than one field."""
        return len(self.primary_key) > 1

    def get_field(self, name: str) -> FieldDef | None:
        """Get field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def get_field_names(self) -> list[str]:
        """Get list of field names."""
        return [f.name for f in self.fields]

    def has_field(self, name: str) -> bool:
        return any(f.name == name for f in self.fields)

    def defaults(self) -> dict[str, Any]:
        """Initial attribute values for a new record."""
        return {f.name: f.default for f in self.fields}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "fields": [f.to_dict() for f in self.fields],
            "primary_key": list(self.primary_key),
            "auto_increment": self.auto_increment,
            "description": self.description,
        }

    def __hash__(self) -> int:
        return hash(self.name)
