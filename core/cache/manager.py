"""Result cache.

Stores analysis results in the key-value store collaborator, keyed by a provider-agnostic hash of
the semantic request. An insertion-ordered in-process mirror serves hot reads and drives eviction;
the store remains authoritative across restarts through a persisted key index.
"""

from __future__ import annotations

import asyncio
import json
import math
import time
from collections import OrderedDict
from typing import TYPE_CHECKING, Final

from marshmallow.exceptions import ValidationError

from models.cache_models import CacheEntry
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from config.loader import Config
    from core.cache.kv_store import KeyValueStore
    from models.analysis_models import AnalysisResult

__all__: list[str] = ["ResultCache"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

CACHE_KEY_PREFIX: Final[str] = "analysis_cache:"
CACHE_INDEX_KEY: Final[str] = f"{CACHE_KEY_PREFIX}__index__"


class ResultCache:
    """TTL-keyed cache of analysis results with capacity-bounded eviction.

    Freshness is computed from ``created_at + ttl_ms``. Entries are written to the store with the
    longer stale-retention TTL so that ``get_stale`` can still serve them to offline degradation after
    they stop being fresh. When the configured capacity is reached, the oldest share of entries by
    insertion order is evicted before the new entry is inserted.

    Args:
        config (Config): Application configuration.
        store (KeyValueStore): Backing key-value store.
        clock (Callable[[], float]): Wall clock in epoch seconds, injectable for tests.
    """

    def __init__(self, config: Config, store: KeyValueStore, clock: Callable[[], float] = time.time) -> None:
        self.config: Config = config
        self._store: KeyValueStore = store
        self._clock: Callable[[], float] = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock: asyncio.Lock = asyncio.Lock()
        logger.debug("ResultCache instance created")

    @property
    def default_ttl_ms(self) -> int:
        return self.config.CACHE.TTL_MS

    @property
    def max_entries(self) -> int:
        return self.config.CACHE.MAX_ENTRIES

    @property
    def size(self) -> int:
        return len(self._entries)

    async def component_load(self) -> None:
        """Rebuild the in-process mirror from the persisted key index.

        Keys whose entries have expired from the store or fail to decode are dropped from the index.
        """
        logger.info("ResultCache initialization started")
        async with self._lock:
            self._entries.clear()
            keys: list[str] = await self._read_index()
            for key in keys:
                entry: CacheEntry | None = await self._read_entry(key)
                if entry is not None:
                    self._entries[key] = entry
            if len(self._entries) != len(keys):
                await self._write_index()
        logger.info("ResultCache initialized with %d entries", len(self._entries))

    async def component_teardown(self) -> None:
        """Drop the in-process mirror. Persisted entries are left in the store."""
        self._entries.clear()
        logger.info("ResultCache shutdown completed")

    async def get(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` if it exists and is still fresh.

        Args:
            key (str): Cache key.

        Returns:
            CacheEntry | None: Fresh entry, or None.
        """
        entry: CacheEntry | None = await self._lookup(key)
        if entry is None:
            logger.debug("Cache miss for key: %s", key[:16])
            return None
        if not entry.is_fresh(self._clock()):
            logger.debug("Cache entry expired for key: %s", key[:16])
            return None
        logger.debug("Cache hit for key: %s", key[:16])
        return entry

    async def get_stale(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` regardless of its TTL.

        Args:
            key (str): Cache key.

        Returns:
            CacheEntry | None: Entry still retained by the store, or None.
        """
        entry: CacheEntry | None = await self._lookup(key)
        if entry is not None:
            logger.debug("Stale cache lookup hit for key: %s", key[:16])
        return entry

    async def put(self, key: str, result: AnalysisResult, ttl_ms: int | None = None) -> CacheEntry:
        """Store a result.

        Args:
            key (str): Cache key.
            result (AnalysisResult): Result to cache.
            ttl_ms (int | None): Freshness period. None uses the configured default.

        Returns:
            CacheEntry: The stored entry.
        """
        entry = CacheEntry(
            key=key,
            result=result,
            created_at=self._clock(),
            ttl_ms=ttl_ms if ttl_ms is not None else self.default_ttl_ms,
        )
        store_ttl_ms: int = max(entry.ttl_ms, self.config.CACHE.STALE_RETENTION_MS)

        async with self._lock:
            if key in self._entries:
                # Re-inserting moves the key to the newest position.
                del self._entries[key]
            elif len(self._entries) >= self.max_entries:
                await self._evict_oldest()

            await self._store.set(self._store_key(key), entry.to_json(), store_ttl_ms)
            self._entries[key] = entry
            await self._write_index()

        logger.debug("Result cached for key: %s (provider: %s)", key[:16], result.provider_id)
        return entry

    async def clear(self) -> int:
        """Delete every cached entry from the mirror and the store.

        Returns:
            int: Number of removed entries.
        """
        async with self._lock:
            keys: list[str] = list(self._entries.keys())
            for key in dict.fromkeys(keys + await self._read_index()):
                await self._store.delete(self._store_key(key))
            await self._store.delete(CACHE_INDEX_KEY)
            self._entries.clear()
        logger.info("Cache cleared (%d entries)", len(keys))
        return len(keys)

    async def _lookup(self, key: str) -> CacheEntry | None:
        entry: CacheEntry | None = self._entries.get(key)
        if entry is not None:
            if self._clock() < entry.created_at + self.config.CACHE.STALE_RETENTION_MS / 1000:
                return entry
            # Past stale retention, the store no longer has it either.
            async with self._lock:
                self._entries.pop(key, None)
            return None
        return await self._read_entry(key)

    async def _evict_oldest(self) -> None:
        """Evict the oldest share of entries by insertion order. Caller holds the lock."""
        count: int = max(1, math.ceil(len(self._entries) * self.config.CACHE.EVICTION_RATIO))
        for _ in range(min(count, len(self._entries))):
            key, _entry = self._entries.popitem(last=False)
            await self._store.delete(self._store_key(key))
        logger.info("Evicted %d oldest cache entries", count)

    async def _read_entry(self, key: str) -> CacheEntry | None:
        raw: str | None = await self._store.get(self._store_key(key))
        if raw is None:
            return None
        try:
            return CacheEntry.from_json(raw)
        except (ValidationError, TypeError, ValueError, KeyError, AttributeError) as err:
            logger.warning("Discarding corrupt cache entry for key %s: %s", key[:16], err)
            await self._store.delete(self._store_key(key))
            return None

    async def _read_index(self) -> list[str]:
        raw: str | None = await self._store.get(CACHE_INDEX_KEY)
        if raw is None:
            return []
        try:
            keys: object = json.loads(raw)
        except json.JSONDecodeError as err:
            logger.warning("Discarding corrupt cache index: %s", err)
            return []
        if not isinstance(keys, list):
            logger.warning("Discarding cache index of unexpected type: %s", type(keys).__name__)
            return []
        return [key for key in keys if isinstance(key, str)]

    async def _write_index(self) -> None:
        await self._store.set(CACHE_INDEX_KEY, json.dumps(list(self._entries.keys())))

    @staticmethod
    def _store_key(key: str) -> str:
        return f"{CACHE_KEY_PREFIX}{key}"
