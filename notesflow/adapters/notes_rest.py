"""REST adapter for ``/notes*`` endpoints."""

from __future__ import annotations

import logging
from urllib.parse import quote

from notesflow.adapters.api_errors import QuotaExceededError, RejectedError
from notesflow.adapters.api_gateway import ApiGateway
from notesflow.domain.entities import ListQuery, ListResult, Note, NoteDraft
from notesflow.domain.mapping import list_result_from_payload, note_from_payload
from notesflow.domain.ports import NoteId, NotesPort

# Statuses the API uses to refuse a create over the plan limit.
_QUOTA_STATUSES = {402, 403}


class NotesRestAdapter(NotesPort):
    """Note listing and CRUD through the shared gateway."""

    def __init__(self, gateway: ApiGateway) -> None:
        self.gateway = gateway
        self._log = logging.getLogger(__name__)

    async def list_notes(self, query: ListQuery) -> ListResult:
        data = await self.gateway.request("/notes", params=query.to_params())
        return list_result_from_payload(data)

    async def get_note(self, note_id: NoteId) -> Note:
        data = await self.gateway.request(self._note_path(note_id))
        return note_from_payload(data)

    async def create_note(self, draft: NoteDraft) -> Note:
        try:
            data = await self.gateway.request("/notes", "POST", draft.to_payload())
        except RejectedError as exc:
            if exc.status in _QUOTA_STATUSES:
                self._log.info("Note creation refused by quota: %s", exc.message)
                raise QuotaExceededError(
                    exc.status or 403,
                    exc.message,
                    payload=exc.payload,
                    context=exc.context,
                ) from exc
            raise
        return note_from_payload(data)

    async def update_note(self, note_id: NoteId, draft: NoteDraft) -> Note:
        data = await self.gateway.request(self._note_path(note_id), "PUT", draft.to_payload())
        return note_from_payload(data)

    async def delete_note(self, note_id: NoteId) -> None:
        await self.gateway.request(self._note_path(note_id), "DELETE")

    @staticmethod
    def _note_path(note_id: NoteId) -> str:
        normalized = str(note_id or "").strip()
        if not normalized:
            raise ValueError("note_id is required")
        return f"/notes/{quote(normalized, safe='')}"


__all__ = ["NotesRestAdapter"]
