"""Paginated, debounced-search note list kept in sync with the API.

``NotesListController`` holds the current ``ListQuery`` and the last applied
``ListResult``. Page changes fetch immediately; search edits restart a quiet
window and fetch page 1 once typing stops. Every fetch carries a generation
number and only the most recently initiated one may touch the state, so a
slow response for an older query can never overwrite a newer one.

Call context:
    Built by ``notesflow.app.controller.AppController`` next to the
    ``AuthSessionManager`` whose snapshots it follows. All methods run on the
    event loop thread.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Set

from notesflow.app.scheduler import TimerScheduler
from notesflow.app.session_manager import AuthSessionManager
from notesflow.domain import quota
from notesflow.domain.entities import (
    DEFAULT_PAGE_SIZE,
    ListQuery,
    ListResult,
    ListStatus,
    Note,
    NoteDraft,
    Session,
    total_pages,
)
from notesflow.domain.ports import NoteId, NotesPort, UseCaseError
from notesflow.usecases.error_mapping import map_api_error

SEARCH_DEBOUNCE_MS = 300
MAX_PAGE_BUTTONS = 5
_SEARCH_TIMER = "search"


@dataclass(frozen=True)
class NotesListState:
    """Complete list snapshot delivered to observers."""
    query: ListQuery
    result: ListResult
    status: ListStatus
    error: Optional[str]
    can_create: bool
    total_pages: int


ListObserver = Callable[[NotesListState], None]


class NotesListController:
    """Keep the displayed page consistent with the latest expressed intent."""

    def __init__(
        self,
        *,
        notes_port: NotesPort,
        session_manager: AuthSessionManager,
        scheduler: Optional[TimerScheduler] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        debounce_ms: int = SEARCH_DEBOUNCE_MS,
    ) -> None:
        """Bind ports and start following session snapshots.

        Args:
            notes_port: Listing and CRUD endpoints.
            session_manager: Source of the tenant plan for quota decisions.
            scheduler: Debounce timers; defaults to the running asyncio loop.
            page_size: Fixed number of notes per page.
            debounce_ms: Quiet window after the last search edit.
        """
        self._notes = notes_port
        self._sessions = session_manager
        self._scheduler = scheduler or TimerScheduler.for_asyncio()
        self.page_size = page_size
        self.debounce_ms = debounce_ms

        self.query = ListQuery(page_size=page_size)
        self.result = ListResult()
        self.status: ListStatus = "idle"
        self.error: Optional[str] = None

        self._generation = 0
        self._known_total: Optional[int] = None
        self._count_generation = 0
        self._tasks: Set[asyncio.Task] = set()
        self._observers: List[ListObserver] = []
        self._log = logging.getLogger(__name__)
        self._unsubscribe_session = session_manager.subscribe(self._on_session)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    def subscribe(self, observer: ListObserver) -> Callable[[], None]:
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def snapshot(self) -> NotesListState:
        return NotesListState(
            query=self.query,
            result=self.result,
            status=self.status,
            error=self.error,
            can_create=self.can_create,
            total_pages=self.total_pages,
        )

    # ------------------------------------------------------------------
    # Quota and pagination
    # ------------------------------------------------------------------
    @property
    def known_count(self) -> Optional[int]:
        """Tenant-wide note count, ``None`` until an unfiltered total is known.

        Filtered totals never count; a create or delete invalidates the value
        until the next unfiltered total arrives.
        """
        return self._known_total

    @property
    def can_create(self) -> bool:
        tenant = self._sessions.tenant
        if tenant is None or not self._sessions.is_authenticated:
            return False
        plan = tenant.subscription_plan
        if self._known_total is None:
            return quota.notes_limit(plan) is None
        return quota.can_create(plan, self._known_total)

    @property
    def total_pages(self) -> int:
        return total_pages(self.result.total_count, self.page_size)

    @property
    def has_previous(self) -> bool:
        return self.query.page > 1

    @property
    def has_next(self) -> bool:
        return self.query.page < self.total_pages

    def clamp_page(self, page: int) -> int:
        """Clamp ``page`` into ``[1, max(total_pages, 1)]``."""
        return min(max(int(page), 1), max(self.total_pages, 1))

    def page_numbers(self) -> List[int]:
        """Page buttons to offer: the first ``MAX_PAGE_BUTTONS`` pages."""
        return list(range(1, min(MAX_PAGE_BUTTONS, self.total_pages) + 1))

    def next_page(self) -> Optional[asyncio.Task]:
        if not self.has_next:
            return None
        return self.set_page(self.clamp_page(self.query.page + 1))

    def previous_page(self) -> Optional[asyncio.Task]:
        if not self.has_previous:
            return None
        return self.set_page(self.clamp_page(self.query.page - 1))

    # ------------------------------------------------------------------
    # User intent
    # ------------------------------------------------------------------
    def set_page(self, page: int) -> asyncio.Task:
        """Switch to ``page`` and fetch it immediately.

        Returns:
            The background task performing the fetch.
        """
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValueError("page must be a positive integer.")
        self.query = self.query.with_page(page)
        self._notify()
        return self._spawn_refresh()

    def set_search_text(self, text: str) -> None:
        """Update the search text now and fetch page 1 once typing pauses."""
        self.query = self.query.with_search(text or "")
        self._notify()
        self._scheduler.schedule(_SEARCH_TIMER, self.debounce_ms, self._on_search_quiet)

    async def load(self, *, page: int = 1, search_text: str = "") -> Optional[ListResult]:
        """Replace the whole query at once (screen entry) and fetch it.

        A pending debounced search is dropped since this query supersedes it.
        """
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValueError("page must be a positive integer.")
        self._scheduler.cancel(_SEARCH_TIMER)
        self.query = ListQuery(page=page, page_size=self.page_size, search_text=search_text or "")
        return await self.refresh()

    @property
    def search_pending(self) -> bool:
        return self._scheduler.is_pending(_SEARCH_TIMER)

    async def refresh(self) -> Optional[ListResult]:
        """Fetch the current query and apply it if no newer fetch started.

        Returns:
            The applied result, or ``None`` when this fetch was superseded.

        Raises:
            UseCaseError: The fetch failed and was still the latest one. The
                previous result stays in place and ``status`` becomes
                ``"error"``.
        """
        self._generation += 1
        generation = self._generation
        query = self.query
        self.status = "loading"
        self.error = None
        self._notify()
        try:
            result = await self._notes.list_notes(query)
        except Exception as exc:
            if generation != self._generation:
                self._log.debug("Discarding failure of superseded fetch #%s", generation)
                return None
            error = map_api_error(
                exc,
                default_code="LIST_FAILED",
                default_message="Failed to fetch notes.",
            )
            self.status = "error"
            self.error = error.message
            self._notify()
            if error is exc:
                raise
            raise error from exc
        if generation != self._generation:
            self._log.debug("Discarding response of superseded fetch #%s", generation)
            return None
        self.result = result
        if not query.search_text.strip():
            self._count_generation += 1
            self._known_total = result.total_count
        self.status = "idle"
        self._notify()
        if self._known_total is None and self._sessions.is_authenticated:
            await self.sync_count()
        return result

    async def sync_count(self) -> Optional[int]:
        """Fetch the unfiltered note total used for quota decisions.

        Failures are logged and leave the count unknown, so a free plan keeps
        ``can_create`` false until a later unfiltered total arrives.
        """
        self._count_generation += 1
        generation = self._count_generation
        try:
            totals = await self._notes.list_notes(ListQuery(page=1, page_size=1))
        except Exception as exc:
            error = map_api_error(exc, default_code="COUNT_FAILED")
            self._log.warning("Note count refresh failed (%s): %s", error.code, error.message)
            return None
        if generation != self._count_generation:
            return self._known_total
        self._known_total = totals.total_count
        self._notify()
        return self._known_total

    # ------------------------------------------------------------------
    # Note operations
    # ------------------------------------------------------------------
    async def get_note(self, note_id: NoteId) -> Note:
        try:
            return await self._notes.get_note(note_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="NOTE_FAILED",
                default_message="Failed to load note.",
            ) from exc

    async def create_note(self, draft: NoteDraft) -> Note:
        """Create a note, then reload the current page.

        Raises:
            UseCaseError: ``QUOTA_EXCEEDED`` when the server refuses over the
                plan limit, otherwise the mapped API error.
        """
        try:
            note = await self._notes.create_note(draft)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="CREATE_FAILED",
                default_message="Failed to create note.",
            ) from exc
        self._log.info("Created note %s", note.id)
        self._invalidate_count()
        await self._refresh_after_mutation()
        return note

    async def update_note(self, note_id: NoteId, draft: NoteDraft) -> Note:
        try:
            note = await self._notes.update_note(note_id, draft)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="UPDATE_FAILED",
                default_message="Failed to update note.",
            ) from exc
        self._log.info("Updated note %s", note_id)
        await self._refresh_after_mutation()
        return note

    async def delete_note(self, note_id: NoteId) -> None:
        try:
            await self._notes.delete_note(note_id)
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="DELETE_FAILED",
                default_message="Failed to delete note.",
            ) from exc
        self._log.info("Deleted note %s", note_id)
        self._invalidate_count()
        await self._refresh_after_mutation()

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------
    async def drain(self) -> None:
        """Wait until every spawned background fetch has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self._scheduler.cancel_all()
        self._unsubscribe_session()
        await self.drain()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _invalidate_count(self) -> None:
        self._count_generation += 1
        self._known_total = None
        self._notify()

    def _on_search_quiet(self) -> None:
        self.query = self.query.with_page(1)
        self._spawn_refresh()

    def _spawn_refresh(self) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._refresh_in_background())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _refresh_in_background(self) -> None:
        try:
            await self.refresh()
        except UseCaseError as exc:
            # Already published through ``status``/``error``.
            self._log.warning("Note list fetch failed (%s): %s", exc.code, exc.message)

    async def _refresh_after_mutation(self) -> None:
        try:
            await self.refresh()
        except UseCaseError as exc:
            self._log.warning("List reload after change failed (%s): %s", exc.code, exc.message)

    def _on_session(self, session: Session) -> None:
        if session.status == "unauthenticated":
            self._scheduler.cancel(_SEARCH_TIMER)
            # Invalidate in-flight fetches issued for the previous session.
            self._generation += 1
            self.query = ListQuery(page_size=self.page_size)
            self.result = ListResult()
            self._count_generation += 1
            self._known_total = None
            self.status = "idle"
            self.error = None
        self._notify()

    def _notify(self) -> None:
        state = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(state)
            except Exception:
                self._log.exception("List observer failed")


__all__ = ["MAX_PAGE_BUTTONS", "NotesListController", "NotesListState", "SEARCH_DEBOUNCE_MS"]
