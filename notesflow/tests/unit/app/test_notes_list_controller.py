from __future__ import annotations

import asyncio
from typing import List

import pytest

from notesflow.adapters.api_errors import NetworkUnreachableError, QuotaExceededError, RejectedError
from notesflow.app.notes_list_controller import NotesListController, NotesListState
from notesflow.app.session_manager import AuthSessionManager
from notesflow.domain.entities import ListResult, NoteDraft
from notesflow.domain.ports import UseCaseError
from notesflow.tests.unit.helpers import (
    AuthPortStub,
    GatewayStub,
    ManualClock,
    MemoryCredentialStore,
    NotesPortStub,
    make_note,
    make_user,
    settle,
)


def _page(*ids: str, total: int) -> ListResult:
    return ListResult(items=tuple(make_note(note_id) for note_id in ids), total_count=total)


def _build(plan: str = "free"):
    clock = ManualClock()
    notes = NotesPortStub()
    sessions = AuthSessionManager(
        auth_port=AuthPortStub(login_result=("tok", make_user(plan))),
        gateway=GatewayStub(),  # type: ignore[arg-type]
        credential_store=MemoryCredentialStore(),
    )
    controller = NotesListController(
        notes_port=notes,
        session_manager=sessions,
        scheduler=clock.scheduler(),
    )
    return controller, notes, sessions, clock


def test_search_typing_burst_fetches_once_with_last_text_on_page_one() -> None:
    controller, notes, sessions, clock = _build()

    async def scenario() -> None:
        await sessions.login("admin@acme.test", "password")
        controller.set_page(3)
        await settle()
        notes.pending[0].set_result(_page("a", total=40))
        await settle()
        notes.list_calls.clear()

        controller.set_search_text("m")
        clock.advance(100)
        controller.set_search_text("me")
        clock.advance(100)
        controller.set_search_text("meeting")
        assert controller.query.search_text == "meeting"
        assert controller.search_pending
        clock.advance(299)
        await settle()
        assert notes.list_calls == []

        clock.advance(1)
        await settle()
        notes.pending[-1].set_result(_page("m1", total=1))
        await controller.drain()

    asyncio.run(scenario())

    assert len(notes.list_calls) == 1
    query = notes.list_calls[0]
    assert query.search_text == "meeting"
    assert query.page == 1
    assert controller.result.total_count == 1
    assert not controller.search_pending


def test_set_page_fetches_immediately() -> None:
    controller, notes, sessions, clock = _build()

    async def scenario() -> None:
        notes.auto_result = _page("n13", total=25)
        await controller.set_page(2)

    asyncio.run(scenario())

    assert [q.page for q in notes.list_calls] == [2]
    assert clock.now == 0
    assert controller.query.page == 2
    assert controller.total_pages == 3


def test_superseded_response_never_overwrites_newer_one() -> None:
    controller, notes, sessions, clock = _build()
    seen: List[NotesListState] = []
    controller.subscribe(seen.append)

    async def scenario():
        task_a = controller.set_page(1)
        await settle()
        task_b = controller.set_page(2)
        await settle()
        assert [q.page for q in notes.list_calls] == [1, 2]

        notes.pending[1].set_result(_page("b1", "b2", total=25))
        await settle()
        notes.pending[0].set_result(_page("a1", "a2", total=25))
        await asyncio.gather(task_a, task_b)

    asyncio.run(scenario())

    assert [n.id for n in controller.result.items] == ["b1", "b2"]
    assert controller.query.page == 2
    assert controller.status == "idle"
    assert all(
        [n.id for n in state.result.items] != ["a1", "a2"] for state in seen
    )


def test_superseded_failure_is_ignored() -> None:
    controller, notes, sessions, clock = _build()

    async def scenario() -> None:
        controller.set_page(1)
        await settle()
        controller.set_page(2)
        await settle()
        notes.pending[1].set_result(_page("b1", total=13))
        await settle()
        notes.pending[0].set_exception(NetworkUnreachableError("down"))
        await controller.drain()

    asyncio.run(scenario())

    assert controller.status == "idle"
    assert controller.error is None
    assert [n.id for n in controller.result.items] == ["b1"]


def test_failed_fetch_keeps_previous_result_and_reports_error() -> None:
    controller, notes, sessions, clock = _build()

    async def scenario() -> None:
        notes.auto_result = _page("a", "b", total=2)
        await controller.refresh()
        notes.auto_result = None
        task = controller.set_page(2)
        await settle()
        notes.pending[-1].set_exception(RejectedError(500, "Database unavailable"))
        await task

    asyncio.run(scenario())

    assert controller.status == "error"
    assert controller.error == "Database unavailable"
    assert [n.id for n in controller.result.items] == ["a", "b"]


def test_refresh_raises_mapped_error_for_direct_callers() -> None:
    controller, notes, sessions, clock = _build()

    async def scenario() -> None:
        task = asyncio.ensure_future(controller.refresh())
        await settle()
        notes.pending[-1].set_exception(NetworkUnreachableError("down"))
        await task

    with pytest.raises(UseCaseError) as exc_info:
        asyncio.run(scenario())

    assert exc_info.value.code == "NETWORK_UNREACHABLE"
    assert controller.status == "error"


def test_mutations_reload_current_page() -> None:
    controller, notes, sessions, clock = _build()

    async def scenario() -> None:
        await sessions.login("admin@acme.test", "password")
        notes.auto_result = _page("x", total=1)
        created = await controller.create_note(NoteDraft(title="Standup"))
        assert created.id == "new-1"
        await controller.update_note("new-1", NoteDraft(title="Standup notes"))
        await controller.delete_note("new-1")

    asyncio.run(scenario())

    assert [c[0] for c in notes.calls] == ["create", "update", "delete"]
    assert len(notes.list_calls) == 3
    assert controller.result.total_count == 1


def test_server_quota_refusal_surfaces_as_quota_exceeded() -> None:
    controller, notes, sessions, clock = _build()
    notes.create_error = QuotaExceededError(403, "Note limit reached for free plan")

    with pytest.raises(UseCaseError) as exc_info:
        asyncio.run(controller.create_note(NoteDraft(title="Fourth")))

    assert exc_info.value.code == "QUOTA_EXCEEDED"
    assert exc_info.value.message == "Note limit reached for free plan"
    assert notes.list_calls == []


@pytest.mark.parametrize(
    "plan, count, expected",
    [("free", 0, True), ("free", 2, True), ("free", 3, False), ("pro", 3, True), ("pro", 500, True)],
)
def test_can_create_follows_plan_and_known_count(plan: str, count: int, expected: bool) -> None:
    controller, notes, sessions, clock = _build(plan)

    async def scenario() -> None:
        await sessions.login("admin@acme.test", "password")
        notes.auto_result = ListResult(total_count=count)
        await controller.refresh()

    asyncio.run(scenario())

    assert controller.can_create is expected
    assert controller.snapshot().can_create is expected


def test_can_create_is_false_without_session() -> None:
    controller, notes, sessions, clock = _build()
    assert controller.can_create is False


def test_filtered_total_does_not_replace_known_count() -> None:
    controller, notes, sessions, clock = _build()

    async def scenario() -> None:
        await sessions.login("admin@acme.test", "password")
        notes.auto_result = ListResult(total_count=3)
        await controller.refresh()
        notes.auto_result = ListResult(total_count=0)
        await controller.load(search_text="nothing matches")

    asyncio.run(scenario())

    assert controller.known_count == 3
    assert controller.can_create is False


def test_create_while_filtered_recounts_unfiltered_notes() -> None:
    controller, notes, sessions, clock = _build()

    async def scenario() -> None:
        await sessions.login("admin@acme.test", "password")
        notes.results_by_search[""] = ListResult(total_count=2)
        await controller.refresh()
        assert controller.can_create is True

        notes.results_by_search["meeting"] = ListResult(total_count=0)
        await controller.load(search_text="meeting")
        notes.results_by_search["meeting"] = _page("m1", total=1)
        notes.results_by_search[""] = ListResult(total_count=3)
        await controller.create_note(NoteDraft(title="meeting notes"))

    asyncio.run(scenario())

    assert controller.result.total_count == 1
    assert controller.known_count == 3
    assert controller.can_create is False
    assert notes.list_calls[-1].search_text == ""
    assert notes.list_calls[-1].page_size == 1


def test_first_filtered_fetch_uses_unfiltered_count() -> None:
    controller, notes, sessions, clock = _build()

    async def scenario() -> None:
        await sessions.login("admin@acme.test", "password")
        notes.results_by_search["zzz"] = ListResult(total_count=0)
        notes.results_by_search[""] = ListResult(total_count=3)
        await controller.load(search_text="zzz")

    asyncio.run(scenario())

    assert controller.result.total_count == 0
    assert controller.known_count == 3
    assert controller.snapshot().can_create is False


def test_unknown_count_blocks_free_plan_only() -> None:
    free, free_notes, free_sessions, _ = _build("free")
    pro, pro_notes, pro_sessions, _ = _build("pro")

    async def scenario() -> None:
        await free_sessions.login("admin@acme.test", "password")
        await pro_sessions.login("admin@acme.test", "password")
        for notes in (free_notes, pro_notes):
            notes.results_by_search["x"] = ListResult(total_count=0)
            notes.auto_result = None
        free_task = asyncio.ensure_future(free.load(search_text="x"))
        pro_task = asyncio.ensure_future(pro.load(search_text="x"))
        await settle()
        # Count requests stay unanswered.
        assert free.known_count is None and pro.known_count is None
        assert free.can_create is False
        assert pro.can_create is True
        free_notes.pending[-1].set_exception(NetworkUnreachableError("down"))
        pro_notes.pending[-1].set_result(ListResult(total_count=9))
        await asyncio.gather(free_task, pro_task)

    asyncio.run(scenario())

    assert free.known_count is None
    assert free.can_create is False
    assert free.status == "idle"
    assert pro.known_count == 9


def test_delete_refreshes_count_before_allowing_create() -> None:
    controller, notes, sessions, clock = _build()
    seen: List[NotesListState] = []

    async def scenario() -> None:
        await sessions.login("admin@acme.test", "password")
        notes.auto_result = ListResult(total_count=3)
        await controller.refresh()
        assert controller.can_create is False
        controller.subscribe(seen.append)
        notes.auto_result = ListResult(total_count=2)
        await controller.delete_note("n1")

    asyncio.run(scenario())

    assert controller.can_create is True
    assert seen[0].can_create is False
    assert controller.known_count == 2


def test_logout_resets_list_and_drops_inflight_fetch() -> None:
    controller, notes, sessions, clock = _build()

    async def scenario() -> None:
        await sessions.login("admin@acme.test", "password")
        notes.auto_result = _page("a", total=1)
        await controller.refresh()
        notes.auto_result = None
        controller.set_page(2)
        controller.set_search_text("draft")
        await settle()
        sessions.logout()
        notes.pending[-1].set_result(_page("late", total=20))
        clock.advance(1000)
        await controller.drain()

    asyncio.run(scenario())

    assert controller.result == ListResult()
    assert controller.query.page == 1
    assert controller.query.search_text == ""
    assert controller.status == "idle"
    assert controller.can_create is False
    assert len(notes.list_calls) == 2


def test_pagination_helpers() -> None:
    controller, notes, sessions, clock = _build()

    async def scenario() -> None:
        notes.auto_result = _page("a", total=25)
        await controller.refresh()
        assert controller.has_next and not controller.has_previous
        await controller.next_page()
        await controller.next_page()
        assert controller.next_page() is None
        await controller.previous_page()

    asyncio.run(scenario())

    assert controller.total_pages == 3
    assert controller.page_numbers() == [1, 2, 3]
    assert controller.clamp_page(0) == 1
    assert controller.clamp_page(9) == 3
    assert [q.page for q in notes.list_calls] == [1, 2, 3, 2]


def test_set_page_rejects_non_positive_pages() -> None:
    controller, notes, sessions, clock = _build()

    with pytest.raises(ValueError):
        controller.set_page(0)


def test_observers_receive_complete_snapshots() -> None:
    controller, notes, sessions, clock = _build()
    seen: List[NotesListState] = []
    controller.subscribe(seen.append)

    async def scenario() -> None:
        notes.auto_result = _page("a", total=13)
        await controller.set_page(2)

    asyncio.run(scenario())

    assert [s.status for s in seen] == ["idle", "loading", "idle"]
    assert seen[0].query.page == 2
    assert seen[-1].result.total_count == 13
    assert seen[-1].total_pages == 2
