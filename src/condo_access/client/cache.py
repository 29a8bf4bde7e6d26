"""Client-side query cache keyed by request path and condominium."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Hashable
from threading import Lock
from typing import Any

QueryKey = tuple[Hashable, ...]

API_PREFIX = "/api/"

# Cached across condominium switches: "my account" and "my tenant list".
TENANT_INDEPENDENT_PREFIXES: tuple[str, ...] = ("/api/v1/me",)


def query_key(path: str, tenant_id: uuid.UUID | None) -> QueryKey:
    """Build the cache key for a GET request.

    The condominium in effect when the request is issued is always
    part of the key, so a response that lands after a switch is
    stored under the old condominium and never read back.
    """
    return (path, str(tenant_id) if tenant_id is not None else None)


def is_tenant_scoped(key: QueryKey) -> bool:
    """Naming convention: API paths are tenant-scoped unless under /api/v1/me."""
    if not key or not isinstance(key[0], str):
        return False
    path = key[0]
    if not path.startswith(API_PREFIX):
        return False
    return not any(
        path == prefix or path.startswith(prefix + "/")
        for prefix in TENANT_INDEPENDENT_PREFIXES
    )


class QueryCache:
    """Tiny keyed cache with predicate invalidation."""

    def __init__(self) -> None:
        self._entries: dict[QueryKey, Any] = {}
        self._lock = Lock()

    def get(self, key: QueryKey) -> Any | None:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: QueryKey, value: Any) -> None:
        with self._lock:
            self._entries[key] = value

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def keys(self) -> list[QueryKey]:
        with self._lock:
            return list(self._entries)

    def invalidate(self, predicate: Callable[[QueryKey], bool]) -> int:
        """Drop every entry whose key matches. Returns how many were dropped."""
        with self._lock:
            doomed = [k for k in self._entries if predicate(k)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def invalidate_tenant_scoped(self) -> int:
        return self.invalidate(is_tenant_scoped)
