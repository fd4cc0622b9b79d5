"""
In-memory LRU cache of analysis results with TTL.

Injected into the analyzer rather than held as module state. It is only a
latency optimization: entries live as long as the process does.
"""

import copy
import hashlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    result: dict
    timestamp: float
    version: str


def normalize_text(text: str) -> str:
    return " ".join(text.lower().split())


def cache_key(text: str, version: str) -> str:
    """SHA-256 of the normalized document text and the analyzer version."""
    raw = f"{version}|{normalize_text(text)}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class ResultCache:
    def __init__(self, max_entries: int = 100, ttl_seconds: float = 3600, clock=time.monotonic) -> None:
        self._max_entries = max_entries
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._store)

    def get(self, key: str, version: str) -> Optional[dict]:
        """Return a copy of the cached result, or None on miss, expiry or version change."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.version != version or self._clock() - entry.timestamp > self._ttl_seconds:
                del self._store[key]
                return None
            self._store.move_to_end(key)
            return copy.deepcopy(entry.result)

    def put(self, key: str, result: dict, version: str) -> None:
        with self._lock:
            self._store.pop(key, None)
            self._store[key] = CacheEntry(copy.deepcopy(result), self._clock(), version)
            while len(self._store) > self._max_entries:
                evicted, _ = self._store.popitem(last=False)
                logger.debug("Evicted cache entry %s", evicted[:12])

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
