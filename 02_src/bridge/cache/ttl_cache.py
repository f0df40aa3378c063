"""In-memory TTL cache used for message deduplication."""

import asyncio
import time
from typing import Callable, Protocol

from ..logging_config import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]


class ITTLCache(Protocol):
    """Mapping from key to expiry timestamp with lazy expiry on read."""

    async def get(self, key: str) -> float | None:
        """Return the expiry if the key is live, otherwise drop it and return None."""
        ...

    async def set(self, key: str, observed_time: float, ttl: float) -> None:
        """Store observed_time + ttl as the expiry. Last writer wins."""
        ...

    async def delete(self, key: str) -> None:
        """Remove the key if present."""
        ...

    def now(self) -> float:
        """Current time on the cache clock."""
        ...


class TTLCache:
    """
    Single-process TTL cache guarded by one asyncio.Lock.

    Reads can mutate (an expired key is removed on access), so every
    operation takes the lock exclusively. Nothing awaits I/O while holding
    it. The background sweep only bounds memory for keys that are set and
    never read again; lazy expiry in get() is what callers rely on.
    """

    def __init__(self, clock: Clock = time.monotonic):
        self._clock = clock
        self._data: dict[str, float] = {}
        self._lock = asyncio.Lock()

    def now(self) -> float:
        """Current time on the cache clock."""
        return self._clock()

    async def get(self, key: str) -> float | None:
        """Return the expiry if now < expiry, otherwise remove the key and return None."""
        now = self._clock()
        async with self._lock:
            expires_at = self._data.get(key)
            if expires_at is not None and now < expires_at:
                return expires_at
            self._data.pop(key, None)
            return None

    async def set(self, key: str, observed_time: float, ttl: float) -> None:
        """Store observed_time + ttl, overwriting any prior entry."""
        async with self._lock:
            self._data[key] = observed_time + ttl

    async def delete(self, key: str) -> None:
        """Remove the key. No-op if absent."""
        async with self._lock:
            self._data.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._data.clear()

    async def sweep_once(self) -> int:
        """Remove every expired key. Returns the number removed."""
        now = self._clock()
        async with self._lock:
            expired = [key for key, expires_at in self._data.items() if now >= expires_at]
            for key in expired:
                del self._data[key]
        if expired:
            logger.debug("Swept %d expired cache keys", len(expired))
        return len(expired)

    async def sweep(self, ttl: float) -> None:
        """Sweep expired keys every `ttl` seconds until cancelled."""
        while True:
            await asyncio.sleep(ttl)
            await self.sweep_once()

    def keys(self) -> list[str]:
        """Keys currently held in storage, expired or not."""
        return list(self._data)

    @property
    def size(self) -> int:
        """Number of entries in storage, including expired ones not yet purged."""
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)
