"""
Shared fixtures for entdb-variation tests.

Every store fixture is seeded with the same data:
    Language: 1 English (en), 2 German (de)
    Item: 1 item1, 2 item2
    ItemTranslation: (1, 1) item1-en, (1, 2) item1-de, (2, 2) item2-de
"""

from typing import Generator

import pytest

from entdb_variation import InMemoryRecordStore, SqliteRecordStore
from entdb_variation.registry import register_record_type, reset_registry

from .models import Item, ItemTranslation, Language


def seed(store) -> None:
    """Write the standard test data into a store."""
    Language(store, name="English", locale="en").save()
    Language(store, name="German", locale="de").save()

    Item(store, name="item1").save()
    Item(store, name="item2").save()

    for item_id, language_id, title, description in [
        (1, 1, "item1-en", "item1-desc-en"),
        (1, 2, "item1-de", "item1-desc-de"),
        (2, 2, "item2-de", "item2-desc-de"),
    ]:
        ItemTranslation(
            store,
            item_id=item_id,
            language_id=language_id,
            title=title,
            description=description,
        ).save()


@pytest.fixture(autouse=True)
def registered_types() -> Generator[None, None, None]:
    """Register the option type so it can be named in configurations."""
    reset_registry()
    register_record_type(Language)
    yield
    reset_registry()


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    """Seeded in-memory store."""
    store = InMemoryRecordStore()
    seed(store)
    return store


@pytest.fixture
def sqlite_store(tmp_path) -> SqliteRecordStore:
    """Seeded SQLite store in a temporary directory."""
    store = SqliteRecordStore(str(tmp_path / "variation.db"), wal_mode=False)
    store.initialize()
    seed(store)
    return store


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Seeded store, once per backend."""
    if request.param == "memory":
        store = InMemoryRecordStore()
    else:
        store = SqliteRecordStore(str(tmp_path / "variation.db"), wal_mode=False)
        store.initialize()
    seed(store)
    return store
