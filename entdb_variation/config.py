"""
Configuration management for entdb-variation.

Two kinds of configuration live here:
- VariationConfig: per-behavior options, declared in code on owner classes
- Settings: process-level options (store backend, logging), read from
  environment variables with the ENTDB_VARIATION_ prefix

Invariants:
    - VariationConfig is immutable; literal-or-callback options are
      normalized to ValueSource on construction
    - Invalid option types fail on construction with ConfigurationError
    - All settings have sensible defaults for local development

How to change safely:
    - Add new options with defaults that keep existing owner classes valid
    - Keep option names in sync with the owner class examples in README/tests
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from .errors import ConfigurationError
from .sources import CallbackSource, LiteralSource, ValueSource, as_source

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariationConfig:
    """Options of one variation behavior attached to an owner class.

    Attributes:
        variations_relation: Name of the owner relation yielding all variations
        default_variation_relation: Name of the owner relation yielding the
            default variation; virtual attributes need it
        variation_option_reference_attribute: Variation attribute storing the
            option primary key
        option_entity_type: Record class (or registered type name) of options
        option_query_filter: Callable ``(query) -> None`` or an equality
            condition narrowing the option query
        default_variation_option_reference: Option primary key of the default
            variation, or callable ``(owner) -> key``
        variation_model_default_attributes: Mapping of attribute values, or
            callable ``(variation) -> None``, applied to new variations. When
            None, the variations relation's where-condition is copied instead
        variation_attribute_default_value_map: Variation attribute name ->
            None, owner attribute name, or callable ``(owner) -> value``. Used
            when the default variation is missing or its value is empty
        variation_save_filter: Callable ``(variation) -> bool`` deciding
            whether a variation is saved (True) or deleted (False)

    Example:
        >>> VariationConfig(
        ...     variations_relation="translations",
        ...     default_variation_relation="default_translation",
        ...     variation_option_reference_attribute="language_id",
        ...     option_entity_type=Language,
        ...     default_variation_option_reference=1,
        ...     variation_attribute_default_value_map={"title": "name"},
        ... )
    """

    variations_relation: str = "variations"
    default_variation_relation: str | None = None
    variation_option_reference_attribute: str = "option_id"
    option_entity_type: Any = None
    option_query_filter: Any = None
    default_variation_option_reference: Any = None
    variation_model_default_attributes: Any = None
    variation_attribute_default_value_map: Mapping[str, Any] = field(default_factory=dict)
    variation_save_filter: Any = None

    def __post_init__(self) -> None:
        """Normalize literal-or-callback options and validate types."""
        if not self.variations_relation:
            raise ConfigurationError(
                "variations_relation must be set.", setting="variations_relation"
            )
        if not self.variation_option_reference_attribute:
            raise ConfigurationError(
                "variation_option_reference_attribute must be set.",
                setting="variation_option_reference_attribute",
            )
        if self.option_entity_type is None:
            raise ConfigurationError(
                "option_entity_type must be set.", setting="option_entity_type"
            )

        default_attributes = self.variation_model_default_attributes
        if default_attributes is not None and not isinstance(
            default_attributes, (LiteralSource, CallbackSource)
        ):
            if not callable(default_attributes) and not isinstance(default_attributes, Mapping):
                raise ConfigurationError(
                    "variation_model_default_attributes must be a valid callable or a mapping.",
                    setting="variation_model_default_attributes",
                )

        save_filter = self.variation_save_filter
        if save_filter is not None and not callable(save_filter) and not isinstance(
            save_filter, (bool, LiteralSource, CallbackSource)
        ):
            raise ConfigurationError(
                "variation_save_filter must be a valid callable.",
                setting="variation_save_filter",
            )

        object.__setattr__(self, "option_query_filter", as_source(self.option_query_filter))
        object.__setattr__(
            self,
            "default_variation_option_reference",
            as_source(self.default_variation_option_reference),
        )
        object.__setattr__(
            self, "variation_model_default_attributes", as_source(default_attributes)
        )
        object.__setattr__(self, "variation_save_filter", as_source(save_filter))
        object.__setattr__(
            self,
            "variation_attribute_default_value_map",
            _normalize_default_value_map(self.variation_attribute_default_value_map),
        )


def _normalize_default_value_map(value_map: Mapping[str, Any]) -> dict[str, ValueSource | None]:
    """Normalize default value map entries.

    Strings name an owner attribute and stay literal; callables become
    callbacks over the owner.
    """
    normalized: dict[str, ValueSource | None] = {}
    for name, source in value_map.items():
        if isinstance(source, LiteralSource):
            source = source.value
        if source is None or isinstance(source, CallbackSource):
            normalized[name] = source
        elif isinstance(source, str):
            normalized[name] = LiteralSource(source)
        elif callable(source):
            normalized[name] = CallbackSource(source)
        else:
            raise ConfigurationError(
                f"Default value map for '{name}' should be an owner attribute name "
                f"or valid callback, got {type(source).__name__}.",
                setting="variation_attribute_default_value_map",
            )
    return normalized


class Settings(BaseSettings):
    """Process-level configuration.

    Attributes:
        store_backend: Record store backend (memory, sqlite)
        sqlite_path: SQLite database file
        sqlite_busy_timeout_ms: SQLite busy timeout in milliseconds
        sqlite_cache_size_pages: SQLite cache size in pages (negative = KB)
        sqlite_wal_mode: Whether SQLite WAL journal mode is enabled
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    store_backend: Literal["memory", "sqlite"] = Field(default="memory")
    sqlite_path: str = Field(default="entdb_variation.db")
    sqlite_busy_timeout_ms: int = Field(default=5000)
    sqlite_cache_size_pages: int = Field(default=-64000)
    sqlite_wal_mode: bool = Field(default=True)

    log_level: str = Field(default="INFO")
    log_format: Literal["json", "text"] = Field(default="json")

    model_config = {"env_prefix": "ENTDB_VARIATION_"}

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "entdb-variation configuration loaded",
            extra={
                "store_backend": self.store_backend,
                "sqlite_path": self.sqlite_path if self.store_backend == "sqlite" else None,
                "log_level": self.log_level,
                "log_format": self.log_format,
            },
        )
