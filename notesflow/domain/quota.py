"""Plan-based note quota policy.

Pure functions without I/O. Results only drive UI affordances; the server
performs the authoritative check on create.
"""

from __future__ import annotations

from typing import Optional

from .entities import PLANS, Plan

FREE_PLAN_NOTE_LIMIT = 3


def _check_plan(plan: Plan) -> None:
    if plan not in PLANS:
        raise ValueError(f"Unknown subscription plan: {plan!r}")


def can_create(plan: Plan, current_count: int) -> bool:
    """Return whether a tenant on ``plan`` may create one more note."""
    _check_plan(plan)
    if plan == "pro":
        return True
    return current_count < FREE_PLAN_NOTE_LIMIT


def notes_limit(plan: Plan) -> Optional[int]:
    """Return the note cap for ``plan`` or ``None`` when unlimited."""
    _check_plan(plan)
    return None if plan == "pro" else FREE_PLAN_NOTE_LIMIT


def remaining(plan: Plan, current_count: int) -> Optional[int]:
    """Return how many notes can still be created, ``None`` when unlimited."""
    limit = notes_limit(plan)
    if limit is None:
        return None
    return max(limit - max(current_count, 0), 0)


__all__ = ["FREE_PLAN_NOTE_LIMIT", "can_create", "notes_limit", "remaining"]
