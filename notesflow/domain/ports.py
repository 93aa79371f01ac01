from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol, Tuple

from .entities import ListQuery, ListResult, Note, NoteDraft, TenantStats, User

NoteId = str
TenantSlug = str

CREDENTIAL_KEY = "token"


# ---- Error model ----
class UseCaseError(Exception):
    """Base class for use case level errors (user-presentable)."""

    def __init__(self, code: str, message: str, *, meta: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.meta = dict(meta or {})


class SessionInvalidError(UseCaseError):
    """Stored credential was rejected during profile verification."""

    def __init__(self, message: str = "Session is no longer valid.") -> None:
        super().__init__("SESSION_INVALID", message)


# ---- Ports (Hexagonal boundaries) ----
class AuthPort(Protocol):
    """Login and profile endpoints of the NotesFlow API."""

    async def login(self, email: str, password: str) -> Tuple[str, User]: ...  # token, user
    async def fetch_profile(self) -> User: ...


class NotesPort(Protocol):
    """Note CRUD and listing."""

    async def list_notes(self, query: ListQuery) -> ListResult: ...
    async def get_note(self, note_id: NoteId) -> Note: ...
    async def create_note(self, draft: NoteDraft) -> Note: ...
    async def update_note(self, note_id: NoteId, draft: NoteDraft) -> Note: ...
    async def delete_note(self, note_id: NoteId) -> None: ...


class TenantPort(Protocol):
    """Tenant subscription and usage endpoints."""

    async def upgrade(self, slug: TenantSlug) -> Dict[str, Any]: ...
    async def get_info(self) -> TenantStats: ...


class CredentialStore(Protocol):
    """Durable key-value storage for the bearer credential."""

    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...


__all__ = [
    "AuthPort",
    "CREDENTIAL_KEY",
    "CredentialStore",
    "NoteId",
    "NotesPort",
    "SessionInvalidError",
    "TenantPort",
    "TenantSlug",
    "UseCaseError",
]
