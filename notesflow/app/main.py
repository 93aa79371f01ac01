"""Command-line shell around the client controllers.

Each invocation is one short-lived client instance: settings are loaded from
``$NOTESFLOW_HOME/user_settings.json`` (default ``~/.notesflow``), the stored
credential is verified through ``bootstrap`` and then one command runs.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import os
from typing import Optional, Sequence

from notesflow.adapters.storage_local import StorageLocal
from notesflow.app.controller import AppController
from notesflow.app.notes_list_controller import NotesListState
from notesflow.domain.entities import Note
from notesflow.domain.ports import UseCaseError
from notesflow.utils.logging import apply_preferences, configure_root
from notesflow.viewmodels.note_editor_vm import NoteEditorVM
from notesflow.viewmodels.settings_vm import SettingsVM

_log = logging.getLogger(__name__)


def _home_dir() -> str:
    return os.path.expanduser(os.environ.get("NOTESFLOW_HOME", "~/.notesflow"))


def load_settings(home: str) -> SettingsVM:
    """Read saved settings, apply ``NOTESFLOW_API_URL`` and default the storage dir."""
    vm = SettingsVM(on_save=StorageLocal(home).save_user_settings)
    vm.apply_dict({"credential_dir": home})
    saved = StorageLocal(home).load_user_settings()
    if saved:
        vm.apply_dict(saved)
    env_url = os.environ.get("NOTESFLOW_API_URL")
    if env_url:
        vm.api_base_url = env_url
    return vm


def _run_config(settings_vm: SettingsVM, pairs: Sequence[str]) -> int:
    """Print settings, or apply ``KEY=VALUE`` pairs and save them."""
    if pairs:
        updates = {}
        for pair in pairs:
            key, sep, value = pair.partition("=")
            if not sep:
                print(f"Expected KEY=VALUE, got {pair!r}")
                return 2
            updates[key.strip()] = value
        try:
            settings_vm.apply_dict(updates)
            settings_vm.cmd_save()
        except ValueError as exc:
            print(f"Error: {exc}")
            return 2
    for key, value in sorted(settings_vm.to_dict().items()):
        print(f"{key} = {value}")
    return 0


def _format_note(note: Note) -> str:
    tags = ", ".join(sorted(note.tags)) or "-"
    return f"{note.id}  {note.title or 'Untitled'}  [{tags}]  {note.updated_at}"


def _print_list(state: NotesListState) -> None:
    for note in state.result.items:
        print(_format_note(note))
    pages = max(state.total_pages, 1)
    print(f"page {state.query.page}/{pages}, {state.result.total_count} notes")
    if not state.can_create:
        print("Note limit reached. Run 'upgrade' for unlimited notes.")


async def _run(args: argparse.Namespace, settings_vm: SettingsVM) -> int:
    app = AppController(settings_vm)
    sessions = app.session_manager
    try:
        await sessions.bootstrap()

        if args.command == "login":
            password = args.password or getpass.getpass("Password: ")
            session = await sessions.login(args.email, password)
            print(f"Signed in as {session.user.email} ({session.tenant.name}, {session.tenant.subscription_plan})")
            return 0
        if args.command == "logout":
            sessions.logout()
            print("Signed out.")
            return 0
        if not sessions.is_authenticated:
            print("Not signed in. Run 'login' first.")
            return 1

        if args.command == "whoami":
            user = sessions.user
            print(f"{user.email} ({user.role}) @ {user.tenant.name} [{user.tenant.subscription_plan}]")
        elif args.command == "notes":
            controller = app.notes_list
            await controller.load(page=args.page, search_text=args.search)
            _print_list(controller.snapshot())
        elif args.command == "show":
            note = await app.notes_list.get_note(args.note_id)
            print(_format_note(note))
            print()
            print(note.content)
        elif args.command == "create":
            editor = NoteEditorVM()
            editor.title = args.title
            editor.content = args.content or ""
            for tag in args.tag or []:
                editor.add_tag(tag)
            note = await editor.cmd_submit(app.notes_list)
            if note is None:
                print("A title is required.")
                return 2
            print(f"Created {note.id}")
        elif args.command == "delete":
            await app.notes_list.delete_note(args.note_id)
            print(f"Deleted {args.note_id}")
        elif args.command == "upgrade":
            session = await app.uc_upgrade()
            print(f"Plan is now {session.tenant.subscription_plan}.")
        elif args.command == "dashboard":
            summary = await app.uc_dashboard(sessions.tenant.subscription_plan)
            print(f"Plan: {summary.plan}  Notes: {summary.usage_label}")
            for note in summary.recent_notes:
                print(_format_note(note))
        return 0
    except UseCaseError as exc:
        _log.debug("Command failed", exc_info=True)
        print(f"Error: {exc.message}")
        return 1
    finally:
        await app.close()


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI args for one client command."""
    parser = argparse.ArgumentParser(prog="notesflow", description="NotesFlow command-line client.")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="sign in and store the token")
    login.add_argument("email")
    login.add_argument("--password")
    sub.add_parser("logout", help="forget the stored token")
    sub.add_parser("whoami", help="show the signed-in user")

    notes = sub.add_parser("notes", help="list notes")
    notes.add_argument("--page", type=int, default=1)
    notes.add_argument("--search", default="")

    show = sub.add_parser("show", help="show one note")
    show.add_argument("note_id")

    create = sub.add_parser("create", help="create a note")
    create.add_argument("title")
    create.add_argument("--content", default="")
    create.add_argument("--tag", action="append")

    delete = sub.add_parser("delete", help="delete a note")
    delete.add_argument("note_id")

    sub.add_parser("upgrade", help="upgrade the tenant to Pro")
    sub.add_parser("dashboard", help="show plan usage and recent notes")

    config = sub.add_parser("config", help="show or change saved settings")
    config.add_argument("pairs", nargs="*", metavar="KEY=VALUE")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entrypoint."""
    args = _parse_args(argv)
    configure_root()
    home = _home_dir()
    try:
        settings_vm = load_settings(home)
    except ValueError as exc:
        print(f"Invalid settings in {home}: {exc}")
        return 2
    apply_preferences(args.debug or settings_vm.debug_logging)
    if args.command == "config":
        return _run_config(settings_vm, args.pairs)
    if args.command == "notes" and args.page < 1:
        print("--page must be at least 1")
        return 2
    return asyncio.run(_run(args, settings_vm))


__all__ = ["load_settings", "main"]
