"""
Attribute validation for entdb-variation records.

This module provides validation utilities:
- Field-level validation against declared kinds
- Attribute validation against record types
- Helpful suggestions for unknown attribute names

Invariants:
    - Validation errors are deterministic
    - Errors are keyed by attribute name
    - Required fields treat None and "" as missing
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import ValidationError
from .schema import FieldKind, RecordTypeDef


def validate_attributes(
    record_type: RecordTypeDef,
    attributes: Dict[str, Any],
) -> Tuple[bool, Dict[str, List[str]]]:
    """Validate attribute values against a record type.

    Args:
        record_type: Record type to validate against
        attributes: Attribute values to validate

    Returns:
        Tuple of (is_valid, mapping of attribute name to errors)
    """
    errors: Dict[str, List[str]] = {}

    for field_def in record_type.fields:
        value = attributes.get(field_def.name)

        if value is None or value == "":
            if field_def.required:
                errors.setdefault(field_def.name, []).append(
                    f"{field_def.name} cannot be blank."
                )
            continue

        error = _validate_field_value(field_def.name, field_def.kind, value, field_def.enum_values)
        if error:
            errors.setdefault(field_def.name, []).append(error)

    return len(errors) == 0, errors


def _validate_field_value(
    name: str,
    kind: FieldKind,
    value: Any,
    enum_values: Optional[Tuple[str, ...]] = None,
) -> Optional[str]:
    """Validate a single field value.

    Returns error message if invalid, None if valid.
    """
    if kind == FieldKind.STRING:
        if not isinstance(value, str):
            return f"{name} must be a string, got {type(value).__name__}"

    elif kind == FieldKind.INTEGER:
        if isinstance(value, bool):
            return f"{name} must be an integer, got bool"
        if isinstance(value, str):
            # Keys read back from text columns arrive as numeric strings
            if not value.strip().lstrip("-").isdigit():
                return f"{name} must be an integer, got '{value}'"
        elif not isinstance(value, int):
            return f"{name} must be an integer, got {type(value).__name__}"

    elif kind == FieldKind.FLOAT:
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            return f"{name} must be a number, got {type(value).__name__}"

    elif kind == FieldKind.BOOLEAN:
        if not isinstance(value, bool):
            return f"{name} must be a boolean, got {type(value).__name__}"

    elif kind == FieldKind.ENUM:
        if not isinstance(value, str):
            return f"{name} must be a string, got {type(value).__name__}"
        if enum_values and value not in enum_values:
            return f"{name} must be one of {enum_values}, got '{value}'"

    elif kind == FieldKind.LIST_STRING:
        if not isinstance(value, list):
            return f"{name} must be a list, got {type(value).__name__}"
        for i, item in enumerate(value):
            if not isinstance(item, str):
                return f"{name}[{i}] must be a string"

    elif kind == FieldKind.LIST_INT:
        if not isinstance(value, list):
            return f"{name} must be a list, got {type(value).__name__}"
        for i, item in enumerate(value):
            if not isinstance(item, int) or isinstance(item, bool):
                return f"{name}[{i}] must be an integer"

    return None


def validate_or_raise(
    record_type: RecordTypeDef,
    attributes: Dict[str, Any],
) -> None:
    """Validate attributes and raise if invalid.

    Raises:
        ValidationError: If validation fails
    """
    is_valid, errors = validate_attributes(record_type, attributes)
    if not is_valid:
        messages = [message for field_errors in errors.values() for message in field_errors]
        raise ValidationError(
            f"Validation failed for {record_type.name}: {'; '.join(messages)}",
            type_name=record_type.name,
            errors=errors,
        )


def suggest_attributes(
    partial: str,
    known: Iterable[str],
    limit: int = 3,
) -> List[str]:
    """Suggest attribute names based on partial input.

    Args:
        partial: Partial or misspelled attribute name
        known: Candidate attribute names
        limit: Maximum suggestions

    Returns:
        List of suggested attribute names
    """
    known = list(known)
    matches = get_close_matches(partial, known, n=limit)

    prefix_matches = [n for n in known if n.lower().startswith(partial.lower())]

    all_matches = list(dict.fromkeys(matches + prefix_matches))
    return all_matches[:limit]
