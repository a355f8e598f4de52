"""In-process TTL cache for best-provider quotes."""

import logging
import time
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from swaprouter.routing.base import SwapRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")

CacheKey = tuple[int, int, str, str, int, str]


@dataclass
class _Entry(Generic[T]):
    value: T
    expires_at: float


class QuoteCache(Generic[T]):
    """TTL cache keyed by the swap request.

    An entry expires after the TTL or at the quote's own expiry,
    whichever comes first.
    """

    def __init__(self, ttl_seconds: float = 30.0, max_entries: int = 1024):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: dict[CacheKey, _Entry[T]] = {}
        self.hits = 0
        self.misses = 0

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    @staticmethod
    def make_key(request: SwapRequest) -> CacheKey:
        return (
            request.from_chain_id,
            request.to_chain_id,
            request.from_token.lower(),
            request.to_token.lower(),
            request.amount,
            request.sender.lower(),
        )

    def get(self, request: SwapRequest) -> Optional[T]:
        """Get a cached value, or None when absent or expired."""
        if not self.enabled:
            return None

        key = self.make_key(request)
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        if time.time() >= entry.expires_at:
            del self._entries[key]
            self.misses += 1
            return None

        self.hits += 1
        return entry.value

    def set(self, request: SwapRequest, value: T, expires_at: Optional[float] = None) -> None:
        """Store a value for the request."""
        if not self.enabled:
            return

        deadline = time.time() + self.ttl_seconds
        if expires_at is not None:
            deadline = min(deadline, expires_at)

        if len(self._entries) >= self.max_entries:
            self.purge_expired()
            if len(self._entries) >= self.max_entries:
                # Drop the entry closest to expiry
                oldest = min(self._entries, key=lambda k: self._entries[k].expires_at)
                del self._entries[oldest]

        self._entries[self.make_key(request)] = _Entry(value=value, expires_at=deadline)

    def purge_expired(self) -> int:
        """Remove expired entries. Returns number removed."""
        now = time.time()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired quote(s)")
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
