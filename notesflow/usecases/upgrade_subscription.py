"""Use case for upgrading the current tenant to the Pro plan."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from notesflow.app.session_manager import AuthSessionManager
from notesflow.domain.entities import Session
from notesflow.domain.ports import TenantPort, UseCaseError
from notesflow.usecases.error_mapping import map_api_error


@dataclass
class UpgradeSubscription:
    """Upgrade the signed-in tenant and refresh the session's user snapshot.

    The profile reload replaces the tenant plan so quota affordances that
    follow session snapshots update without a restart.
    """

    tenant_port: TenantPort
    session_manager: AuthSessionManager

    async def __call__(self) -> Session:
        tenant = self.session_manager.tenant
        if tenant is None or not self.session_manager.is_authenticated:
            raise UseCaseError("NOT_AUTHENTICATED", "Sign in first.")
        if tenant.is_pro:
            raise UseCaseError("ALREADY_PRO", "You're already on the Pro plan.")
        try:
            await self.tenant_port.upgrade(tenant.slug)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="UPGRADE_FAILED",
                default_message="Upgrade failed.",
            ) from exc
        logging.getLogger(__name__).info("Tenant %s upgraded to pro", tenant.slug)
        return await self.session_manager.reload_profile()


__all__ = ["UpgradeSubscription"]
