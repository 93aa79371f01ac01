from __future__ import annotations

"""Domain value objects shared across adapters, use-cases, and controllers."""

import math
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, Literal, Optional, Tuple

Plan = Literal["free", "pro"]
Role = Literal["admin", "member"]
SessionStatus = Literal["unauthenticated", "authenticating", "authenticated", "invalid"]
ListStatus = Literal["idle", "loading", "error"]

PLANS: FrozenSet[str] = frozenset({"free", "pro"})
ROLES: FrozenSet[str] = frozenset({"admin", "member"})

DEFAULT_PAGE_SIZE = 12


@dataclass(frozen=True)
class Tenant:
    """Organization container that owns users, notes, and a subscription plan."""

    id: str
    """Backend identifier of the tenant."""
    slug: str
    """URL-safe tenant key used by tenant-scoped endpoints such as upgrade."""
    name: str
    """Display name of the organization."""
    subscription_plan: Plan
    """Plan that drives the quota policy."""

    def __post_init__(self) -> None:
        if self.subscription_plan not in PLANS:
            raise ValueError(f"Unknown subscription plan: {self.subscription_plan!r}")

    @property
    def is_pro(self) -> bool:
        return self.subscription_plan == "pro"


@dataclass(frozen=True)
class User:
    """Authenticated user snapshot, replaced wholesale on re-authentication."""

    id: str
    email: str
    role: Role
    tenant: Tenant

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown user role: {self.role!r}")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class Session:
    """Complete session snapshot delivered to observers on every transition."""

    status: SessionStatus = "unauthenticated"
    user: Optional[User] = None
    token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.status == "authenticated" and self.user is not None

    @property
    def tenant(self) -> Optional[Tenant]:
        return self.user.tenant if self.user else None

    def __repr__(self) -> str:
        # Keep bearer tokens out of logs and tracebacks.
        masked = "***" if self.token else None
        return f"Session(status={self.status!r}, user={self.user!r}, token={masked!r})"


@dataclass(frozen=True)
class Note:
    """Read-only cached copy of a server-side note."""

    id: str
    title: str = ""
    content: str = ""
    tags: FrozenSet[str] = frozenset()
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise ValueError("Note.id must be a non-empty string.")
        object.__setattr__(self, "tags", frozenset(self.tags or ()))


@dataclass(frozen=True)
class NoteDraft:
    """User-edited note fields sent on create and update."""

    title: str
    content: str = ""
    tags: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        title = (self.title or "").strip()
        if not title:
            raise ValueError("Note title must not be blank.")
        object.__setattr__(self, "title", title)
        object.__setattr__(self, "content", (self.content or "").strip())
        object.__setattr__(self, "tags", _unique_tags(self.tags))

    def to_payload(self) -> dict:
        return {"title": self.title, "content": self.content, "tags": list(self.tags)}


def _unique_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for raw in tags or ():
        tag = str(raw).strip()
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)


@dataclass(frozen=True)
class ListQuery:
    """Request parameters for the current list view."""

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    search_text: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.page, bool) or not isinstance(self.page, int) or self.page < 1:
            raise ValueError("ListQuery.page must be a positive integer.")
        if self.page_size < 1:
            raise ValueError("ListQuery.page_size must be a positive integer.")

    def with_page(self, page: int) -> "ListQuery":
        return replace(self, page=page)

    def with_search(self, text: str) -> "ListQuery":
        return replace(self, search_text=text)

    def to_params(self) -> dict:
        """Return the query-string mapping for ``GET /notes``."""
        return {"page": self.page, "limit": self.page_size, "search": self.search_text.strip()}


@dataclass(frozen=True)
class ListResult:
    """One page of notes plus the server-reported total; replaced atomically."""

    items: Tuple[Note, ...] = ()
    total_count: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
        if self.total_count < 0:
            raise ValueError("ListResult.total_count cannot be negative.")

    def total_pages(self, page_size: int) -> int:
        return total_pages(self.total_count, page_size)


def total_pages(total_count: int, page_size: int) -> int:
    """Number of pages needed to show ``total_count`` items."""
    if page_size < 1:
        raise ValueError("page_size must be a positive integer.")
    return math.ceil(max(total_count, 0) / page_size)


@dataclass(frozen=True)
class TenantStats:
    """Tenant usage numbers reported by ``GET /tenants/info``."""

    tenant: Optional[Tenant] = None
    total_notes: Optional[int] = None
    notes_limit: Optional[int] = None
    user_count: Optional[int] = None
    extra: dict = field(default_factory=dict)


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "ListQuery",
    "ListResult",
    "ListStatus",
    "Note",
    "NoteDraft",
    "PLANS",
    "Plan",
    "ROLES",
    "Role",
    "Session",
    "SessionStatus",
    "Tenant",
    "TenantStats",
    "User",
    "total_pages",
]
