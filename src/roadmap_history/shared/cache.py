"""In-memory expiring cache keyed by truncated content hashes."""

from __future__ import annotations

import hashlib
import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")

# Hex digits kept from the SHA-256 digest when building cache keys
_KEY_LENGTH = 16


def content_key(content: str) -> str:
    """Short, stable cache key for a piece of text."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:_KEY_LENGTH]


class ExpiringCache(Generic[V]):
    """A bounded map whose entries expire ``ttl_seconds`` after insertion.

    When full, inserting a new key evicts the oldest entry.  ``clock`` must
    return monotonically increasing seconds; tests pass a fake one.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 3600.0,
        capacity: int = 64,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.capacity = capacity
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, V]] = OrderedDict()

    def get(self, key: str) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            logger.debug("Cache entry %s expired", key)
            return None
        return value

    def set(self, key: str, value: V) -> None:
        self._entries.pop(key, None)
        while len(self._entries) >= self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Cache full, evicted %s", evicted)
        self._entries[key] = (self._clock() + self.ttl_seconds, value)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for expires_at, _ in self._entries.values() if now < expires_at)
