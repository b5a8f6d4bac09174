"""
Time-bounded response cache for upstream data lookups.

Entries expire ``ttl`` seconds after they were written. Expiry is checked on
read only; there is no background sweep. An optional ``max_entries`` bound
evicts the least recently used entry when exceeded.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    value: Any
    timestamp: float


@dataclass
class _KeyLock:
    """Lock serializing fetches of one key, with the number of callers using it."""
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


def make_key(*parts: Any) -> str:
    """Compose a cache key from lookup parameters, e.g. make_key("tic", 123)."""
    return ":".join(str(part) for part in parts)


class TTLCache:
    """Key -> (value, timestamp) store with a fixed time-to-live."""

    def __init__(
        self,
        ttl: float = 300.0,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[Hashable, CacheEntry]" = OrderedDict()
        self._locks: Dict[Hashable, _KeyLock] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self._lookup(key)[0]

    def _lookup(self, key: Hashable) -> Tuple[bool, Any]:
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        if self._clock() - entry.timestamp >= self.ttl:
            del self._entries[key]
            return False, None
        self._entries.move_to_end(key)
        return True, entry.value

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the cached value, or ``default`` if absent or expired."""
        found, value = self._lookup(key)
        return value if found else default

    def put(self, key: Hashable, value: Any) -> None:
        """Store ``value`` under ``key`` with a fresh timestamp."""
        self._entries[key] = CacheEntry(value=value, timestamp=self._clock())
        self._entries.move_to_end(key)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache full, evicted {evicted}")

    def clear(self) -> None:
        # In-flight fetches keep their locks; those are dropped as they finish
        self._entries.clear()

    async def get_or_fetch(
        self,
        key: Hashable,
        fetch: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Return the cached value for ``key`` or await ``fetch()`` and store it.

        Concurrent callers for the same key share one fetch. The per-key
        lock lives only while some caller holds or waits for it.

        Args:
            key: Cache key
            fetch: Coroutine factory performing the real lookup; exceptions
                propagate and nothing is stored
        """
        found, value = self._lookup(key)
        if found:
            return value

        key_lock = self._locks.get(key)
        if key_lock is None:
            key_lock = self._locks[key] = _KeyLock()
        key_lock.users += 1
        try:
            async with key_lock.lock:
                # Another caller may have filled the slot while we waited
                found, value = self._lookup(key)
                if found:
                    return value
                value = await fetch()
                self.put(key, value)
                return value
        finally:
            key_lock.users -= 1
            if key_lock.users == 0 and self._locks.get(key) is key_lock:
                del self._locks[key]
