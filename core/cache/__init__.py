"""Result cache package.

Provides the key-value store collaborators, the TTL result cache and in-flight request coalescing.
"""

from __future__ import annotations

from core.cache.inflight_manager import InFlightManager
from core.cache.kv_store import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore
from core.cache.manager import ResultCache

__all__: list[str] = [
    "InFlightManager",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "ResultCache",
    "SQLiteKeyValueStore",
]
