"""
entdb-variation - per-option variation records for entity owners.

This library attaches "variation" records to an owner record, one per
option of a fixed enumeration (one translation per language, one content
rendering per censorship mode):
- Record model with declared fields, validation and relations
- Variation reconciliation (match, create missing, delete orphans)
- Virtual owner attributes backed by the default variation
- Validation and save cascade from owner to variations
- In-memory and SQLite record stores

Example:
    >>> from entdb_variation import InMemoryRecordStore
    >>>
    >>> store = InMemoryRecordStore()
    >>> item = Item(store, name="Widget")
    >>> for translation in item.behavior("translations").get_variation_models():
    ...     translation.title = "Widget"
    >>> item.save()
    True
    >>> item.title
    'Widget'

Invariants:
    - One variation per option after reconciliation, in option order
    - Caches are per owner instance; nothing is shared across owners
    - Storage failures propagate unchanged

Version: 1.0.0
"""

__version__ = "1.0.0"

from .config import Settings, VariationConfig
from .errors import (
    ConfigurationError,
    RecordNotFoundError,
    StorageError,
    UnknownAttributeError,
    ValidationError,
    VariationError,
)
from .observability import setup_logging
from .query import Query, Relation, keys_match, normalize_key
from .record import Record, relation
from .registry import (
    RecordRegistry,
    get_registry,
    register_record_type,
)
from .schema import FieldDef, FieldKind, RecordTypeDef, field
from .sources import CallbackSource, LiteralSource, as_source
from .store import (
    InMemoryRecordStore,
    RecordStore,
    SqliteRecordStore,
    create_record_store,
)
from .variation import VariationCoordinator, VariationOwner

__all__ = [
    # Version
    "__version__",
    # Schema types
    "RecordTypeDef",
    "FieldDef",
    "FieldKind",
    "field",
    # Records
    "Record",
    "relation",
    "Query",
    "Relation",
    "keys_match",
    "normalize_key",
    # Registry
    "RecordRegistry",
    "get_registry",
    "register_record_type",
    # Variations
    "VariationConfig",
    "VariationCoordinator",
    "VariationOwner",
    "LiteralSource",
    "CallbackSource",
    "as_source",
    # Stores
    "RecordStore",
    "InMemoryRecordStore",
    "SqliteRecordStore",
    "create_record_store",
    # Configuration
    "Settings",
    "setup_logging",
    # Errors
    "VariationError",
    "ConfigurationError",
    "UnknownAttributeError",
    "ValidationError",
    "StorageError",
    "RecordNotFoundError",
]
