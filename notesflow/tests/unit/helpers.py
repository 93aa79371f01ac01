from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple

from notesflow.app.scheduler import TimerScheduler
from notesflow.domain.entities import ListQuery, ListResult, Note, NoteDraft, Tenant, User


def make_tenant(plan: str = "free", slug: str = "acme") -> Tenant:
    return Tenant(id="t-1", slug=slug, name="Acme", subscription_plan=plan)  # type: ignore[arg-type]


def make_user(plan: str = "free", email: str = "admin@acme.test", role: str = "admin") -> User:
    return User(id="u-1", email=email, role=role, tenant=make_tenant(plan))  # type: ignore[arg-type]


def make_note(note_id: str, title: str = "") -> Note:
    return Note(id=note_id, title=title or f"Note {note_id}")


def user_payload(plan: str = "free") -> Dict[str, Any]:
    return {
        "id": "u-1",
        "email": "admin@acme.test",
        "role": "admin",
        "tenant": {"id": "t-1", "slug": "acme", "name": "Acme", "subscription_plan": plan},
    }


class MemoryCredentialStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})
        self.calls: List[Tuple[str, str]] = []

    def get(self, key: str) -> Optional[str]:
        self.calls.append(("get", key))
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.calls.append(("set", key))
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.calls.append(("remove", key))
        self.data.pop(key, None)


class GatewayStub:
    """Records credential writes the way ``ApiGateway`` exposes them."""

    def __init__(self) -> None:
        self.credential: Optional[str] = None
        self.history: List[Optional[str]] = []

    def set_credential(self, token: Optional[str]) -> None:
        self.credential = token or None
        self.history.append(self.credential)


class AuthPortStub:
    def __init__(
        self,
        *,
        login_result: Optional[Tuple[str, User]] = None,
        login_error: Optional[Exception] = None,
        profile: Optional[User] = None,
        profile_error: Optional[Exception] = None,
        profile_gate: Optional[asyncio.Future] = None,
    ) -> None:
        self.login_result = login_result
        self.login_error = login_error
        self.profile = profile
        self.profile_error = profile_error
        self.profile_gate = profile_gate
        self.calls: List[Tuple[str, Any]] = []

    async def login(self, email: str, password: str) -> Tuple[str, User]:
        self.calls.append(("login", email))
        if self.login_error is not None:
            raise self.login_error
        assert self.login_result is not None
        return self.login_result

    async def fetch_profile(self) -> User:
        self.calls.append(("fetch_profile", None))
        if self.profile_gate is not None:
            await self.profile_gate
        if self.profile_error is not None:
            raise self.profile_error
        assert self.profile is not None
        return self.profile


class NotesPortStub:
    """Notes port whose ``list_notes`` calls resolve only when the test says so."""

    def __init__(self) -> None:
        self.list_calls: List[ListQuery] = []
        self.pending: List[asyncio.Future] = []
        self.calls: List[Tuple[str, Any]] = []
        self.auto_result: Optional[ListResult] = None
        self.results_by_search: Dict[str, ListResult] = {}
        self.create_error: Optional[Exception] = None

    async def list_notes(self, query: ListQuery) -> ListResult:
        self.list_calls.append(query)
        if query.search_text in self.results_by_search:
            return self.results_by_search[query.search_text]
        if self.auto_result is not None:
            return self.auto_result
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future

    async def get_note(self, note_id: str) -> Note:
        self.calls.append(("get", note_id))
        return make_note(note_id)

    async def create_note(self, draft: NoteDraft) -> Note:
        self.calls.append(("create", draft))
        if self.create_error is not None:
            raise self.create_error
        return Note(id="new-1", title=draft.title, content=draft.content, tags=frozenset(draft.tags))

    async def update_note(self, note_id: str, draft: NoteDraft) -> Note:
        self.calls.append(("update", note_id))
        return Note(id=note_id, title=draft.title, content=draft.content, tags=frozenset(draft.tags))

    async def delete_note(self, note_id: str) -> None:
        self.calls.append(("delete", note_id))


class ManualClock:
    """Deterministic ``after``/``after_cancel`` pair driven by ``advance``."""

    def __init__(self) -> None:
        self.now = 0
        self._seq = 0
        self._timers: Dict[int, Tuple[int, Callable[[], None]]] = {}

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> int:
        self._seq += 1
        self._timers[self._seq] = (self.now + delay_ms, callback)
        return self._seq

    def cancel(self, token: int) -> None:
        self._timers.pop(token, None)

    def advance(self, ms: int) -> None:
        target = self.now + ms
        while True:
            due = sorted(
                (when, token) for token, (when, _) in self._timers.items() if when <= target
            )
            if not due:
                break
            when, token = due[0]
            _, callback = self._timers.pop(token)
            self.now = when
            callback()
        self.now = target

    def scheduler(self) -> TimerScheduler:
        return TimerScheduler(self.schedule, self.cancel)


async def settle() -> None:
    """Let spawned tasks run up to their next real suspension point."""
    for _ in range(5):
        await asyncio.sleep(0)


__all__ = [
    "AuthPortStub",
    "GatewayStub",
    "ManualClock",
    "MemoryCredentialStore",
    "NotesPortStub",
    "make_note",
    "make_tenant",
    "make_user",
    "settle",
    "user_payload",
]
