"""
In-memory response cache. Keyed by prompt fingerprint; bounded FIFO with a TTL.

Eviction drops the oldest-inserted entry, not the least recently read one.
"""

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from app.core.config import CACHE_MAX_ENTRIES, CACHE_TTL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    text: str
    created_at: float


def prompt_fingerprint(prompt: str) -> str:
    """Stable content hash of a prompt."""
    return hashlib.md5(prompt.encode("utf-8")).hexdigest()


class ResponseCache:
    def __init__(
        self,
        max_entries: int = CACHE_MAX_ENTRIES,
        ttl_seconds: float = CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max(1, max_entries)
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> str | None:
        """Return cached text if present and younger than the TTL; expired entries are dropped."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.created_at >= self.ttl_seconds:
                del self._entries[key]
                logger.info("[cache:get] expired key=%s", key[:8])
                return None
        return entry.text

    def set(self, key: str, text: str) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(text=text, created_at=self._clock())
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.info("[cache:set] evicted key=%s", evicted[:8])
        logger.info("[cache:set] key=%s size=%d", key[:8], len(self._entries))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
