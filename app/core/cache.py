"""Lightweight in-memory TTL cache for email-domain → tenant lookups.

One instance is owned by the tenant resolver and shared by every request in
the process. Reads are frequent, writes rare, and invalidation is always a
full clear, so a single lock around the dict is enough.
"""

import threading
import time
from collections.abc import Callable

# Default TTL in seconds
DEFAULT_TTL = 300.0


class DomainCache:
    """Maps a lower-cased email domain to a tenant id for ``ttl`` seconds."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()
        self.last_cleared_at: float = clock()

    def get(self, domain: str) -> int | None:
        """Return the cached tenant id if present and not expired, else None."""
        with self._lock:
            entry = self._entries.get(domain)
            if entry is None:
                return None
            stored_at, tenant_id = entry
            if self._clock() - stored_at > self.ttl:
                self._entries.pop(domain, None)
                return None
            return tenant_id

    def put(self, domain: str, tenant_id: int) -> None:
        with self._lock:
            self._entries[domain] = (self._clock(), tenant_id)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries = {}
            self.last_cleared_at = self._clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
