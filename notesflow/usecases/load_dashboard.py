"""Use case for the dashboard summary: plan usage and recent notes."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional, Tuple

from notesflow.domain import quota
from notesflow.domain.entities import ListQuery, Note, Plan, TenantStats
from notesflow.domain.ports import NotesPort, TenantPort, UseCaseError
from notesflow.usecases.error_mapping import map_api_error

RECENT_NOTES_LIMIT = 5


@dataclass(frozen=True)
class DashboardSummary:
    """Numbers and notes shown on the dashboard."""

    plan: Plan
    total_notes: int
    notes_limit: Optional[int]
    recent_notes: Tuple[Note, ...] = ()
    stats: TenantStats = field(default_factory=TenantStats)

    @property
    def can_create(self) -> bool:
        return quota.can_create(self.plan, self.total_notes)

    @property
    def show_upgrade_prompt(self) -> bool:
        return not self.can_create

    @property
    def usage_label(self) -> str:
        if self.notes_limit is None:
            return "Unlimited"
        return f"{self.total_notes} of {self.notes_limit} used"


@dataclass
class LoadDashboard:
    """Fetch tenant info and the most recent notes concurrently."""

    tenant_port: TenantPort
    notes_port: NotesPort

    async def __call__(self, plan: Plan) -> DashboardSummary:
        try:
            stats, recent = await asyncio.gather(
                self.tenant_port.get_info(),
                self.notes_port.list_notes(ListQuery(page=1, page_size=RECENT_NOTES_LIMIT)),
            )
        except UseCaseError:
            raise
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="DASHBOARD_FAILED",
                default_message="Failed to load dashboard.",
            ) from exc
        # The server-side plan in tenant info wins over the cached session copy.
        effective_plan: Plan = stats.tenant.subscription_plan if stats.tenant else plan
        total = stats.total_notes if stats.total_notes is not None else recent.total_count
        return DashboardSummary(
            plan=effective_plan,
            total_notes=total,
            notes_limit=quota.notes_limit(effective_plan),
            recent_notes=recent.items,
            stats=stats,
        )


__all__ = ["DashboardSummary", "LoadDashboard", "RECENT_NOTES_LIMIT"]
