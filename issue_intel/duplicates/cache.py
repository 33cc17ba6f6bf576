"""
Embedding caches.

The duplicate detector only sees the `EmbeddingCache` protocol, so the
backing store can change without touching call sites:

- InMemoryEmbeddingCache: process-local dict behind a lock
- RedisEmbeddingCache: shared store, entries serialized as JSON

A cache is a pure optimization. Dropping it never changes results, only
costs extra embedding calls.

Cache methods are synchronous; async callers run them through
`asyncio.to_thread` so a Redis round trip never blocks the event loop.
"""

import logging
import threading
from typing import Dict, Iterable, Optional, Protocol

import redis
from pydantic import ValidationError

from issue_intel.duplicates.models import EmbeddingCacheEntry

logger = logging.getLogger(__name__)


class EmbeddingCache(Protocol):
    """Key -> entry store for issue embeddings."""

    def get(self, issue_id: str) -> Optional[EmbeddingCacheEntry]:
        ...

    def get_many(self, issue_ids: Iterable[str]) -> Dict[str, EmbeddingCacheEntry]:
        """Entries for the ids that are cached; misses are left out."""
        ...

    def set(self, issue_id: str, entry: EmbeddingCacheEntry) -> None:
        ...

    def invalidate(self, issue_id: str) -> None:
        ...

    def clear(self) -> None:
        ...


class InMemoryEmbeddingCache:
    """Thread-safe in-process cache; also safe across asyncio tasks."""

    def __init__(self):
        self._entries: Dict[str, EmbeddingCacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, issue_id: str) -> Optional[EmbeddingCacheEntry]:
        with self._lock:
            return self._entries.get(issue_id)

    def get_many(self, issue_ids: Iterable[str]) -> Dict[str, EmbeddingCacheEntry]:
        with self._lock:
            return {issue_id: self._entries[issue_id] for issue_id in issue_ids if issue_id in self._entries}

    def set(self, issue_id: str, entry: EmbeddingCacheEntry) -> None:
        with self._lock:
            self._entries[issue_id] = entry

    def invalidate(self, issue_id: str) -> None:
        with self._lock:
            self._entries.pop(issue_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, issue_id: str) -> bool:
        with self._lock:
            return issue_id in self._entries


class RedisEmbeddingCache:
    """
    Redis-backed cache shared between processes.

    Redis errors degrade to cache misses (get) or no-ops (set/invalidate)
    so a Redis outage only costs extra embedding calls.
    """

    KEY_PREFIX = "embedding:issue"

    def __init__(self, client: "redis.Redis", ttl: Optional[int] = None, prefix: str = KEY_PREFIX):
        self.client = client
        self.ttl = ttl  # seconds; None keeps entries until invalidated
        self.prefix = prefix

    def _key(self, issue_id: str) -> str:
        return f"{self.prefix}:{issue_id}"

    def get(self, issue_id: str) -> Optional[EmbeddingCacheEntry]:
        try:
            data = self.client.get(self._key(issue_id))
        except redis.RedisError as e:
            logger.warning(f"Embedding cache read failed for {issue_id}: {e}")
            return None

        if data is None:
            return None
        return self._decode(issue_id, data)

    def get_many(self, issue_ids: Iterable[str]) -> Dict[str, EmbeddingCacheEntry]:
        """One MGET for the whole batch."""
        ids = list(issue_ids)
        if not ids:
            return {}
        try:
            values = self.client.mget([self._key(issue_id) for issue_id in ids])
        except redis.RedisError as e:
            logger.warning(f"Embedding cache batch read failed for {len(ids)} issues: {e}")
            return {}

        entries: Dict[str, EmbeddingCacheEntry] = {}
        for issue_id, data in zip(ids, values):
            if data is None:
                continue
            entry = self._decode(issue_id, data)
            if entry is not None:
                entries[issue_id] = entry
        return entries

    def _decode(self, issue_id: str, data) -> Optional[EmbeddingCacheEntry]:
        try:
            return EmbeddingCacheEntry.model_validate_json(data)
        except ValidationError as e:
            logger.warning(f"Dropping corrupt embedding cache entry for {issue_id}: {e}")
            self.invalidate(issue_id)
            return None

    def set(self, issue_id: str, entry: EmbeddingCacheEntry) -> None:
        try:
            self.client.set(self._key(issue_id), entry.model_dump_json(), ex=self.ttl)
        except redis.RedisError as e:
            logger.warning(f"Embedding cache write failed for {issue_id}: {e}")

    def invalidate(self, issue_id: str) -> None:
        try:
            self.client.delete(self._key(issue_id))
        except redis.RedisError as e:
            logger.warning(f"Embedding cache invalidation failed for {issue_id}: {e}")

    def clear(self) -> None:
        try:
            keys = list(self.client.scan_iter(match=f"{self.prefix}:*"))
            if keys:
                self.client.delete(*keys)
        except redis.RedisError as e:
            logger.warning(f"Embedding cache clear failed: {e}")
