"""
Error types for entdb-variation.

This module defines all exception types raised by the library:
- VariationError: Base exception
- ConfigurationError: Invalid or missing behavior configuration
- UnknownAttributeError: Name is neither a native nor a variation-backed attribute
- ValidationError: Record validation failed (only raised on request)
- StorageError: Record store operation failed
- RecordNotFoundError: Stored record to update does not exist

Invariants:
    - All errors inherit from VariationError
    - Errors include context for debugging
    - UnknownAttributeError is also an AttributeError, so getattr()/hasattr()
      fall through to their defaults
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class VariationError(Exception):
    """Base exception for all entdb-variation errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "VARIATION_ERROR"
        self.details = details or {}


class ConfigurationError(VariationError):
    """Behavior configuration is missing or has an invalid type.

    Raised when:
    - default_variation_option_reference is required but not set
    - variation_model_default_attributes is not None, a callable or a mapping
    - a default value map entry is not None, an attribute name or a callable
    """

    def __init__(
        self,
        message: str,
        setting: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details={"setting": setting},
        )
        self.setting = setting


class UnknownAttributeError(VariationError, AttributeError):
    """Attribute is unknown to the record and to its variations.

    Includes suggestions for similar attribute names.

    Attributes:
        attribute: The unknown attribute
        type_name: The record type being accessed
        suggestions: Similar attribute names
    """

    def __init__(
        self,
        attribute: str,
        type_name: str,
        suggestions: Optional[List[str]] = None,
        action: str = "get",
    ) -> None:
        suggestions = suggestions or []
        verb = "Getting" if action == "get" else "Setting"
        msg = f"{verb} unknown attribute '{attribute}' of '{type_name}'"
        if suggestions:
            msg += f". Did you mean: {', '.join(suggestions)}?"

        super().__init__(
            msg,
            code="UNKNOWN_ATTRIBUTE",
            details={
                "attribute": attribute,
                "type_name": type_name,
                "suggestions": suggestions,
            },
        )
        self.attribute = attribute
        self.type_name = type_name
        self.suggestions = suggestions


class ValidationError(VariationError):
    """Record validation failed.

    Attributes:
        type_name: The record type that failed validation
        errors: Mapping of attribute name to error messages
    """

    def __init__(
        self,
        message: str,
        type_name: Optional[str] = None,
        errors: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"type_name": type_name, "errors": errors or {}},
        )
        self.type_name = type_name
        self.errors = errors or {}


class StorageError(VariationError):
    """Record store operation failed.

    Raised when:
    - A record without a primary key is written
    - The backend rejects a write
    """

    def __init__(
        self,
        message: str,
        type_name: Optional[str] = None,
        code: str = "STORAGE_ERROR",
    ) -> None:
        super().__init__(
            message,
            code=code,
            details={"type_name": type_name},
        )
        self.type_name = type_name


class RecordNotFoundError(StorageError):
    """Stored record does not exist.

    Raised when updating a record whose primary key has no stored row.
    """

    def __init__(
        self,
        message: str,
        type_name: str,
        primary_key: Any,
    ) -> None:
        super().__init__(message, type_name=type_name, code="NOT_FOUND")
        self.details["primary_key"] = primary_key
        self.primary_key = primary_key
