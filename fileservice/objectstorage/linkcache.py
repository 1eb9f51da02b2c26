"""
In-memory cache for presigned download links.

Presigning is not free (it needs the client to sign a request) and the listing endpoints do it for every
file on a page, so we keep the links around until they expire. Each worker process has its own cache,
created at startup and passed to the request handlers.
"""

import threading
import time
from collections import OrderedDict
from typing import Awaitable, Callable, NamedTuple


class CacheEntry(NamedTuple):
    url: str
    expires_at: float


class LinkCache:
    """
    Maps object keys to presigned URLs with an expiry time.

    An entry is only returned while clock() < expires_at. The cache holds at most max_entries links:
    when full, expired entries are swept first and then the least recently used ones are dropped.
    """

    def __init__(self, max_entries: int = 10000, clock: Callable[[], float] = time.monotonic):
        if max_entries <= 0:
            raise ValueError("max_entries must be greater than zero")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.url

    def set(self, key: str, url: str, ttl: float) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(url, self._clock() + ttl)
            self._entries.move_to_end(key)
            if len(self._entries) > self.max_entries:
                self._purge_expired()
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    async def get_or_create(self, key: str, ttl: float, compute_fn: Callable[[], Awaitable[str]]) -> str:
        """
        Return the cached link for key, or await compute_fn() and cache its result for ttl seconds.

        The lock is not held while computing: two requests missing on the same key will both compute,
        and the last one to finish wins. If compute_fn fails (or the request is cancelled) nothing is stored.
        """
        url = self.get(key)
        if url is not None:
            return url
        url = await compute_fn()
        self.set(key, url, ttl)
        return url

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        with self._lock:
            keys = [key for key in self._entries if key.startswith(prefix)]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)
