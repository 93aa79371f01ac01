"""REST adapter for ``/tenants/*`` endpoints."""

from __future__ import annotations

from typing import Any, Dict
from urllib.parse import quote

from notesflow.adapters.api_gateway import ApiGateway
from notesflow.domain.entities import TenantStats
from notesflow.domain.mapping import tenant_stats_from_payload
from notesflow.domain.ports import TenantPort, TenantSlug


class TenantRestAdapter(TenantPort):
    """Subscription upgrade and tenant usage lookups."""

    def __init__(self, gateway: ApiGateway) -> None:
        self.gateway = gateway

    async def upgrade(self, slug: TenantSlug) -> Dict[str, Any]:
        normalized = str(slug or "").strip()
        if not normalized:
            raise ValueError("tenant slug is required")
        data = await self.gateway.request(f"/tenants/{quote(normalized, safe='')}/upgrade", "POST")
        return dict(data) if isinstance(data, dict) else {}

    async def get_info(self) -> TenantStats:
        data = await self.gateway.request("/tenants/info")
        return tenant_stats_from_payload(data)


__all__ = ["TenantRestAdapter"]
