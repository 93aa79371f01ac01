"""Domain package exports for value objects and policies."""

from .entities import (
    ListQuery,
    ListResult,
    ListStatus,
    Note,
    NoteDraft,
    Plan,
    Role,
    Session,
    SessionStatus,
    Tenant,
    TenantStats,
    User,
)
from .quota import FREE_PLAN_NOTE_LIMIT, can_create, notes_limit, remaining

__all__ = [
    "FREE_PLAN_NOTE_LIMIT",
    "ListQuery",
    "ListResult",
    "ListStatus",
    "Note",
    "NoteDraft",
    "Plan",
    "Role",
    "Session",
    "SessionStatus",
    "Tenant",
    "TenantStats",
    "User",
    "can_create",
    "notes_limit",
    "remaining",
]
