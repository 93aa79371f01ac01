"""Adapter and use-case wiring for the client runtime.

This module builds the shared ``ApiGateway``, the REST adapters and the two
stateful controllers from :class:`notesflow.viewmodels.settings_vm.SettingsVM`.
One ``AppController`` corresponds to one client instance and therefore to
exactly one session.
"""

from __future__ import annotations

from typing import Optional

from ..adapters.api_gateway import ApiGateway
from ..adapters.auth_rest import AuthRestAdapter
from ..adapters.notes_rest import NotesRestAdapter
from ..adapters.storage_local import StorageLocal
from ..adapters.tenant_rest import TenantRestAdapter
from ..domain.ports import CredentialStore
from ..usecases.load_dashboard import LoadDashboard
from ..usecases.upgrade_subscription import UpgradeSubscription
from ..viewmodels.settings_vm import SettingsVM
from .notes_list_controller import NotesListController
from .scheduler import TimerScheduler
from .session_manager import AuthSessionManager, NavigateFn


class AppController:
    """Create runtime adapters, controllers and use cases from settings state.

    Call chain:
        ``notesflow.app.main`` (or a GUI shell) creates one instance, awaits
        ``session_manager.bootstrap()`` and then drives ``notes_list``.
    """

    def __init__(
        self,
        settings_vm: SettingsVM,
        *,
        credential_store: Optional[CredentialStore] = None,
        scheduler: Optional[TimerScheduler] = None,
        on_navigate: Optional[NavigateFn] = None,
    ) -> None:
        """Build the object graph.

        Args:
            settings_vm: API URL, timeout, paging and storage preferences.
            credential_store: Token storage; defaults to ``StorageLocal`` in
                ``settings_vm.credential_dir``.
            scheduler: Debounce timers; defaults to the running asyncio loop.
            on_navigate: Navigation intent callback forwarded to the session
                manager.
        """
        self.settings_vm = settings_vm
        self.credential_store = credential_store or StorageLocal(settings_vm.credential_dir)
        self.gateway = ApiGateway(
            settings_vm.api_base_url,
            request_timeout_s=settings_vm.request_timeout_s or None,
        )
        self.auth_adapter = AuthRestAdapter(self.gateway)
        self.notes_adapter = NotesRestAdapter(self.gateway)
        self.tenant_adapter = TenantRestAdapter(self.gateway)

        self.session_manager = AuthSessionManager(
            auth_port=self.auth_adapter,
            gateway=self.gateway,
            credential_store=self.credential_store,
            on_navigate=on_navigate,
        )
        self.notes_list = NotesListController(
            notes_port=self.notes_adapter,
            session_manager=self.session_manager,
            scheduler=scheduler,
            page_size=settings_vm.page_size,
            debounce_ms=settings_vm.search_debounce_ms,
        )
        self.uc_upgrade = UpgradeSubscription(
            tenant_port=self.tenant_adapter,
            session_manager=self.session_manager,
        )
        self.uc_dashboard = LoadDashboard(
            tenant_port=self.tenant_adapter,
            notes_port=self.notes_adapter,
        )

    async def close(self) -> None:
        """Stop timers, wait for background fetches and release the HTTP session."""
        await self.notes_list.close()
        self.gateway.session.close()


__all__ = ["AppController"]
