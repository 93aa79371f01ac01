"""Create/edit form state for a single note.

Call context:
    The create and edit screens bind their inputs to ``NoteEditorVM`` and call
    ``cmd_submit`` with the shared ``NotesListController`` so the list reloads
    after the server accepts the change.
"""

from __future__ import annotations

from typing import List, Optional

from notesflow.app.notes_list_controller import NotesListController
from notesflow.domain.entities import Note, NoteDraft
from notesflow.domain.ports import UseCaseError


class NoteEditorVM:
    """Title/content/tag inputs plus submit state, no I/O here."""

    def __init__(self, note: Optional[Note] = None) -> None:
        self.note_id: Optional[str] = note.id if note else None
        self.title: str = note.title if note else ""
        self.content: str = note.content if note else ""
        self.tags: List[str] = sorted(note.tags) if note else []
        self.tag_input: str = ""
        self.is_saving: bool = False
        self.error: Optional[str] = None

    @property
    def is_edit(self) -> bool:
        return self.note_id is not None

    @property
    def can_submit(self) -> bool:
        return bool(self.title.strip()) and not self.is_saving

    def add_tag(self, raw: Optional[str] = None) -> bool:
        """Add the trimmed tag (``tag_input`` by default); duplicates are ignored."""
        tag = (self.tag_input if raw is None else raw).strip()
        if not tag or tag in self.tags:
            return False
        self.tags.append(tag)
        self.tag_input = ""
        return True

    def remove_tag(self, tag: str) -> None:
        self.tags = [item for item in self.tags if item != tag]

    def to_draft(self) -> NoteDraft:
        return NoteDraft(title=self.title, content=self.content, tags=tuple(self.tags))

    async def cmd_submit(self, controller: NotesListController) -> Optional[Note]:
        """Create or update the note; ``None`` when the form is not submittable.

        Errors are kept in ``error`` for inline display and re-raised.
        """
        if not self.can_submit:
            return None
        self.is_saving = True
        self.error = None
        try:
            draft = self.to_draft()
            if self.note_id is None:
                note = await controller.create_note(draft)
                self.note_id = note.id
            else:
                note = await controller.update_note(self.note_id, draft)
        except UseCaseError as exc:
            self.error = exc.message
            raise
        finally:
            self.is_saving = False
        return note


__all__ = ["NoteEditorVM"]
