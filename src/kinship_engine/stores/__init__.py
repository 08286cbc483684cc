"""Store contracts and adapters.

- base: ABCs the engine depends on
- memory: thread-safe in-process adapters
- sqlite: SQLite adapters for the derived cache, preferences and requests
"""
from .base import (
    AncestorCacheStore,
    ConnectionRequestStore,
    PreferenceStore,
    ProfileStore,
    RelationshipFactStore,
)
from .memory import (
    InMemoryAncestorCacheStore,
    InMemoryConnectionRequestStore,
    InMemoryFactStore,
    InMemoryPreferenceStore,
    InMemoryProfileStore,
)
from .sqlite import (
    SQLiteAncestorCacheStore,
    SQLiteConnectionRequestStore,
    SQLiteDatabase,
    SQLitePreferenceStore,
)

__all__ = [
    # Contracts
    "ProfileStore",
    "RelationshipFactStore",
    "PreferenceStore",
    "AncestorCacheStore",
    "ConnectionRequestStore",
    # In-memory
    "InMemoryProfileStore",
    "InMemoryFactStore",
    "InMemoryPreferenceStore",
    "InMemoryAncestorCacheStore",
    "InMemoryConnectionRequestStore",
    # SQLite
    "SQLiteDatabase",
    "SQLiteAncestorCacheStore",
    "SQLitePreferenceStore",
    "SQLiteConnectionRequestStore",
]
