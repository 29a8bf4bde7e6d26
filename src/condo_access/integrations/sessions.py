"""In-memory keyed store with per-entry expiry.

Holds ad-hoc third-party sessions (IoT device cloud logins and the
like) keyed by an opaque session key. Owned by the integration that
needs it; authorization never reads it.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class _Entry(Generic[T]):
    value: T
    expires_at: float


class ExpiringSessionStore(Generic[T]):
    """Process-wide session store with explicit expiry.

    Thread-safe via Lock. Single-instance only.
    For multi-instance deployments: replace with a shared backend.
    """

    def __init__(
        self,
        default_ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry[T]] = {}
        self._lock = Lock()

    def put(self, key: str, value: T, ttl_seconds: int | None = None) -> None:
        """Store ``value`` under ``key``, replacing any previous session."""
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl)

    def get(self, key: str) -> T | None:
        """Return the live session for ``key``; expired entries are dropped."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def contains(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> bool:
        """Remove a session. Returns whether one was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def cleanup(self) -> int:
        """Remove all expired entries. Call periodically.

        Returns:
            Number of keys cleaned up.
        """
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if now >= e.expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
