"""Mapping helpers between API payloads and domain objects.

REST adapters call these functions on the ``data`` part of response
envelopes. Payloads use snake_case keys; camelCase aliases are accepted.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from .entities import ListResult, Note, Tenant, TenantStats, User


def _pick(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _require_mapping(payload: Any, label: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValueError(f"{label} payload: expected object")
    return payload


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def tenant_from_payload(payload: Any) -> Tenant:
    data = _require_mapping(payload, "tenant")
    plan = _text(_pick(data, "subscription_plan", "subscriptionPlan", "plan")).strip().lower()
    return Tenant(
        id=_text(_pick(data, "id", "_id")),
        slug=_text(data.get("slug")),
        name=_text(data.get("name")),
        subscription_plan=plan or "free",  # type: ignore[arg-type]
    )


def user_from_payload(payload: Any) -> User:
    """Build a ``User`` from either ``{"user": {...}}`` or the bare user object."""
    data = _require_mapping(payload, "user")
    nested = data.get("user")
    if isinstance(nested, Mapping):
        data = nested
    tenant = data.get("tenant")
    if tenant is None:
        raise ValueError("user payload: tenant missing")
    role = _text(data.get("role")).strip().lower() or "member"
    return User(
        id=_text(_pick(data, "id", "_id")),
        email=_text(data.get("email")),
        role=role,  # type: ignore[arg-type]
        tenant=tenant_from_payload(tenant),
    )


def note_from_payload(payload: Any) -> Note:
    data = _require_mapping(payload, "note")
    nested = data.get("note")
    if isinstance(nested, Mapping):
        data = nested
    tags = data.get("tags") or []
    if not isinstance(tags, (list, tuple, set, frozenset)):
        raise ValueError("note payload: tags must be a list")
    return Note(
        id=_text(_pick(data, "id", "_id")),
        title=_text(data.get("title")),
        content=_text(data.get("content")),
        tags=frozenset(str(tag) for tag in tags),
        created_at=_text(_pick(data, "created_at", "createdAt")),
        updated_at=_text(_pick(data, "updated_at", "updatedAt")),
    )


def notes_from_payload(entries: Iterable[Any]) -> List[Note]:
    return [note_from_payload(entry) for entry in entries if isinstance(entry, Mapping)]


def list_result_from_payload(payload: Any) -> ListResult:
    """Normalize a ``GET /notes`` payload ``{notes: [...], total}``."""
    data = _require_mapping(payload, "notes")
    entries = data.get("notes") or []
    if not isinstance(entries, list):
        raise ValueError("notes payload: expected list of notes")
    items = notes_from_payload(entries)
    total = _optional_int(_pick(data, "total", "totalCount", "total_count"))
    return ListResult(items=tuple(items), total_count=len(items) if total is None else total)


def tenant_stats_from_payload(payload: Any) -> TenantStats:
    """Normalize ``GET /tenants/info``; shapes vary so every field is optional."""
    data = _require_mapping(payload, "tenant info")
    tenant_raw = data.get("tenant")
    stats = data.get("stats")
    stats = stats if isinstance(stats, Mapping) else data
    tenant = None
    if isinstance(tenant_raw, Mapping):
        tenant = tenant_from_payload(tenant_raw)
    limit = _optional_int(_pick(stats, "notes_limit", "notesLimit", "note_limit"))
    if limit is not None and limit < 0:
        limit = None
    known = {"tenant", "stats"}
    return TenantStats(
        tenant=tenant,
        total_notes=_optional_int(_pick(stats, "total_notes", "totalNotes", "note_count", "notes_count")),
        notes_limit=limit,
        user_count=_optional_int(_pick(stats, "user_count", "userCount", "total_users", "totalUsers")),
        extra={key: value for key, value in data.items() if key not in known},
    )


__all__ = [
    "list_result_from_payload",
    "note_from_payload",
    "notes_from_payload",
    "tenant_from_payload",
    "tenant_stats_from_payload",
    "user_from_payload",
]
