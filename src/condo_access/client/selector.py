"""Client-side condominium selection.

The selection is advisory UX state. It only decides which
condominium id the client *claims* in request headers; the server
re-validates the claim on every request.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from enum import StrEnum
from threading import RLock

import structlog

from condo_access.api.schemas import MembershipResponse
from condo_access.auth.roles import Role
from condo_access.client.cache import QueryCache
from condo_access.client.storage import SELECTED_TENANT_KEY, SelectionStorage
from condo_access.errors import UnknownTenantError

logger = structlog.get_logger()


class SelectorState(StrEnum):
    UNINITIALIZED = "uninitialized"
    SELECTING = "selecting"
    SELECTED = "selected"


def _parse_tenant_id(raw: str | None) -> uuid.UUID | None:
    if not raw:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        return None


def default_choice(memberships: Sequence[MembershipResponse]) -> uuid.UUID | None:
    """First condominium where the user manages, else the first one listed."""
    for m in memberships:
        if m.role is Role.MANAGER:
            return m.condominium_id
    if memberships:
        return memberships[0].condominium_id
    return None


class TenantSelector:
    """Holds the tenant list and the current selection.

    States: ``UNINITIALIZED -> SELECTING(id) -> SELECTED(id)``.
    The persisted id is read once, at construction.
    """

    def __init__(self, storage: SelectionStorage, cache: QueryCache) -> None:
        self._storage = storage
        self._cache = cache
        self._lock = RLock()
        self._state = SelectorState.UNINITIALIZED
        self._tenant_id: uuid.UUID | None = None
        self._memberships: list[MembershipResponse] = []
        self._persisted_id = _parse_tenant_id(storage.get(SELECTED_TENANT_KEY))

    @property
    def state(self) -> SelectorState:
        return self._state

    @property
    def tenant_id(self) -> uuid.UUID | None:
        """Condominium to claim in request headers, in either non-initial state."""
        return self._tenant_id

    @property
    def memberships(self) -> list[MembershipResponse]:
        return list(self._memberships)

    @property
    def role_in_selected(self) -> Role | None:
        for m in self._memberships:
            if m.condominium_id == self._tenant_id:
                return m.role
        return None

    def _known(self, tenant_id: uuid.UUID | None) -> bool:
        return any(m.condominium_id == tenant_id for m in self._memberships)

    def load(self, memberships: Iterable[MembershipResponse]) -> SelectorState:
        """Initial population from the server's tenant list.

        A persisted selection still in the list is restored as
        SELECTED; otherwise a default is proposed as SELECTING.
        """
        with self._lock:
            self._memberships = list(memberships)
            if self._persisted_id is not None and self._known(self._persisted_id):
                self._state = SelectorState.SELECTED
                self._tenant_id = self._persisted_id
            else:
                self._propose_default()
            logger.debug(
                "tenant_selector_loaded",
                state=str(self._state),
                tenant_id=str(self._tenant_id) if self._tenant_id else None,
            )
            return self._state

    def _propose_default(self) -> None:
        candidate = default_choice(self._memberships)
        if candidate is None:
            self._state = SelectorState.UNINITIALIZED
            self._tenant_id = None
        else:
            self._state = SelectorState.SELECTING
            self._tenant_id = candidate

    def select(self, tenant_id: uuid.UUID) -> None:
        """Explicit user selection.

        Persists the id and, when it changes, drops every tenant-scoped
        cache entry before the new id becomes visible.

        Raises:
            UnknownTenantError: ``tenant_id`` is not in the tenant list.
        """
        with self._lock:
            if not self._known(tenant_id):
                raise UnknownTenantError(str(tenant_id))
            previous = self._tenant_id
            if previous != tenant_id:
                dropped = self._cache.invalidate_tenant_scoped()
                logger.info(
                    "tenant_switched",
                    previous=str(previous) if previous else None,
                    tenant_id=str(tenant_id),
                    cache_entries_dropped=dropped,
                )
            self._tenant_id = tenant_id
            self._state = SelectorState.SELECTED
            self._storage.set(SELECTED_TENANT_KEY, str(tenant_id))
            self._persisted_id = tenant_id

    def clear(self) -> None:
        """Forget the selection, including the persisted one."""
        with self._lock:
            if self._tenant_id is not None:
                self._cache.invalidate_tenant_scoped()
            self._tenant_id = None
            self._state = SelectorState.UNINITIALIZED
            self._storage.remove(SELECTED_TENANT_KEY)
            self._persisted_id = None

    def refresh(self, memberships: Iterable[MembershipResponse]) -> None:
        """Replace the tenant list with a fresh server response.

        A selection that is no longer listed is re-derived as on load,
        and tenant-scoped caches are dropped if the id changes.
        """
        with self._lock:
            previous = self._tenant_id
            self._memberships = list(memberships)
            if previous is not None and self._known(previous):
                return
            self._propose_default()
            if self._tenant_id != previous:
                self._cache.invalidate_tenant_scoped()
                logger.info(
                    "tenant_selection_reset",
                    previous=str(previous) if previous else None,
                    tenant_id=str(self._tenant_id) if self._tenant_id else None,
                )
