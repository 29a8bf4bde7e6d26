"""Client-side condominium selection, query cache and permission gate.

Quick start::

    from condo_access.client import CondoAccessClient

    async with CondoAccessClient("https://api.example.com", token=jwt) as client:
        await client.load_condominiums()
        gate = await client.permission_gate()
        gate.can_access_module("financeiro")
"""

from condo_access.client.api import CondoAccessClient
from condo_access.client.cache import QueryCache, is_tenant_scoped, query_key
from condo_access.client.permissions import PermissionGate, module_key_for_path
from condo_access.client.selector import SelectorState, TenantSelector
from condo_access.client.storage import FileStorage, MemoryStorage

__all__ = [
    "CondoAccessClient",
    "FileStorage",
    "MemoryStorage",
    "PermissionGate",
    "QueryCache",
    "SelectorState",
    "TenantSelector",
    "is_tenant_scoped",
    "module_key_for_path",
    "query_key",
]
