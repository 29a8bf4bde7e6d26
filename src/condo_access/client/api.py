"""Async HTTP client that carries identity and condominium claims."""

from __future__ import annotations

from types import TracebackType
from typing import Any

import httpx
import structlog

from condo_access.api.schemas import (
    AccountResponse,
    MembershipListResponse,
    MembershipResponse,
    ModulePermissionListResponse,
    ModulePermissionUpdateResponse,
)
from condo_access.auth.roles import Role
from condo_access.client.cache import QueryCache, query_key
from condo_access.client.permissions import PermissionGate
from condo_access.client.selector import SelectorState, TenantSelector
from condo_access.client.storage import MemoryStorage
from condo_access.errors import error_from_payload

logger = structlog.get_logger()

ACCOUNT_PATH = "/api/v1/me"
MY_CONDOMINIUMS_PATH = "/api/v1/me/condominiums"
MODULE_PERMISSIONS_PATH = "/api/v1/module-permissions"


class CondoAccessClient:
    """Client for the condo-access API.

    Identity (bearer token) and claimed condominium travel as two
    separate headers. GET responses are cached under
    ``(path, condominium id at issue time)``.

    Args:
        base_url: Server root, e.g. ``https://api.example.com``.
        token: Signed bearer token, or ``None`` for anonymous calls.
        selector: Condominium selector; a fresh in-memory one by default.
        cache: Query cache shared with the selector.
        tenant_header: Header that carries the claimed condominium.
        transport: Optional httpx transport (tests use ASGITransport).
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        selector: TenantSelector | None = None,
        cache: QueryCache | None = None,
        tenant_header: str = "X-Condominium-Id",
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.cache = cache or QueryCache()
        self.selector = selector or TenantSelector(MemoryStorage(), self.cache)
        self._token = token
        self._tenant_header = tenant_header
        self._http = httpx.AsyncClient(
            base_url=base_url, transport=transport, timeout=timeout
        )

    async def __aenter__(self) -> CondoAccessClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        tenant_id = self.selector.tenant_id
        if tenant_id is not None:
            headers[self._tenant_header] = str(tenant_id)
        return headers

    async def _request(
        self, method: str, path: str, *, json: Any | None = None
    ) -> Any:
        """Send a request, raising the server's access error on failure.

        Raises:
            AccessError: response carries a ``kind`` payload.
            httpx.HTTPStatusError: any other non-2xx response.
        """
        response = await self._http.request(
            method, path, headers=self._headers(), json=json
        )
        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            if isinstance(payload, dict) and "kind" in payload:
                logger.debug("api_access_error", path=path, kind=payload["kind"])
                raise error_from_payload(payload)
            response.raise_for_status()
        return response.json()

    async def get_json(self, path: str, *, use_cache: bool = True) -> Any:
        """GET ``path``, served from cache when possible.

        The key is computed before the request is sent, so a switch
        while it is in flight stores the result under the old
        condominium.
        """
        key = query_key(path, self.selector.tenant_id)
        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                return cached
        data = await self._request("GET", path)
        if use_cache:
            self.cache.set(key, data)
        return data

    async def account(self) -> AccountResponse:
        data = await self.get_json(ACCOUNT_PATH)
        return AccountResponse.model_validate(data)

    async def load_condominiums(self) -> list[MembershipResponse]:
        """Fetch my condominiums and feed them to the selector."""
        data = await self.get_json(MY_CONDOMINIUMS_PATH, use_cache=False)
        memberships = MembershipListResponse.model_validate(data).items
        if self.selector.state is SelectorState.UNINITIALIZED:
            self.selector.load(memberships)
        else:
            self.selector.refresh(memberships)
        return memberships

    async def permission_gate(self) -> PermissionGate:
        """Fresh module flags for the selected condominium.

        Never cached: a toggle must be visible on the next fetch.
        """
        data = await self.get_json(MODULE_PERMISSIONS_PATH, use_cache=False)
        rows = ModulePermissionListResponse.model_validate(data).items
        account = await self.account()
        role: Role | None = (
            Role.GLOBAL_ADMIN
            if account.is_global_admin
            else self.selector.role_in_selected
        )
        return PermissionGate(rows, role)

    async def set_module_enabled(
        self,
        module_key: str,
        is_enabled: bool,
        *,
        module_label: str | None = None,
    ) -> ModulePermissionUpdateResponse:
        body: dict[str, Any] = {"is_enabled": is_enabled}
        if module_label is not None:
            body["module_label"] = module_label
        data = await self._request(
            "PATCH", f"{MODULE_PERMISSIONS_PATH}/{module_key}", json=body
        )
        return ModulePermissionUpdateResponse.model_validate(data)
