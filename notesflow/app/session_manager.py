"""Authenticated session state machine.

``AuthSessionManager`` owns the single ``Session`` of a client instance. It is
the only writer of the gateway credential and of the persisted token, and it
publishes every transition to its observers as a complete snapshot.

Transitions::

    unauthenticated -> authenticating -> authenticated   (bootstrap)
    authenticating  -> unauthenticated                   (verification failed)
    *               -> authenticated                     (login)
    authenticated   -> unauthenticated                   (logout)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Callable, List, Literal, Optional

from notesflow.adapters.api_errors import RejectedError
from notesflow.adapters.api_gateway import ApiGateway
from notesflow.domain.entities import Session, Tenant, User
from notesflow.domain.ports import (
    CREDENTIAL_KEY,
    AuthPort,
    CredentialStore,
    SessionInvalidError,
    UseCaseError,
)
from notesflow.usecases.error_mapping import map_api_error, server_message

NavigationTarget = Literal["home", "login"]
SessionObserver = Callable[[Session], None]
NavigateFn = Callable[[NavigationTarget], None]


class AuthSessionManager:
    """Drive login, logout and startup verification of the stored credential."""

    def __init__(
        self,
        *,
        auth_port: AuthPort,
        gateway: ApiGateway,
        credential_store: CredentialStore,
        on_navigate: Optional[NavigateFn] = None,
    ) -> None:
        """Bind collaborators.

        Args:
            auth_port: Login/profile endpoints.
            gateway: Shared transport whose credential this manager owns.
            credential_store: Durable storage for the bearer token.
            on_navigate: Receives ``"home"`` after login and ``"login"``
                after logout.
        """
        self._auth = auth_port
        self._gateway = gateway
        self._store = credential_store
        self.on_navigate = on_navigate
        self._session = Session()
        self._observers: List[SessionObserver] = []
        self._bootstrap_task: Optional[asyncio.Task] = None
        self._log = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def session(self) -> Session:
        return self._session

    @property
    def user(self) -> Optional[User]:
        return self._session.user

    @property
    def tenant(self) -> Optional[Tenant]:
        return self._session.tenant

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    def subscribe(self, observer: SessionObserver) -> Callable[[], None]:
        """Register ``observer`` and return a function that unregisters it."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Lifecycle commands
    # ------------------------------------------------------------------
    async def bootstrap(self) -> Session:
        """Restore the session from the stored credential, once per instance.

        Later or concurrent calls wait for the first run and return the
        current session. Verification failures are absorbed: the stored and
        gateway credentials are cleared and the session ends unauthenticated.
        Cancelling a caller does not cancel the shared verification; if the
        verification itself is cancelled it counts as a failure.
        """
        if self._bootstrap_task is None:
            self._bootstrap_task = asyncio.ensure_future(self._run_bootstrap())
        task = self._bootstrap_task
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
        return self._session

    async def login(self, email: str, password: str) -> Session:
        """Exchange credentials for a token and enter the authenticated state.

        Raises:
            UseCaseError: ``LOGIN_FAILED`` with the server message when the API
                declines, or the mapped transport error. The current session
                and the stored credential are left untouched.
        """
        try:
            token, user = await self._auth.login(email, password)
        except Exception as exc:
            error = self._login_error(exc)
            self._log.warning("Login failed (%s): %s", error.code, error.message)
            raise error from exc
        self._store.set(CREDENTIAL_KEY, token)
        self._gateway.set_credential(token)
        self._transition(Session(status="authenticated", user=user, token=token))
        self._log.info("Signed in as %s (tenant %s)", user.email, user.tenant.slug)
        self._navigate("home")
        return self._session

    def logout(self) -> None:
        """Drop the session and every copy of the credential. Idempotent."""
        self._store.remove(CREDENTIAL_KEY)
        self._gateway.set_credential(None)
        self._transition(Session())
        self._log.info("Signed out")
        self._navigate("login")

    async def reload_profile(self) -> Session:
        """Re-fetch the profile and replace the user snapshot wholesale."""
        if not self.is_authenticated:
            raise UseCaseError("NOT_AUTHENTICATED", "Sign in first.")
        token = self._session.token
        try:
            user = await self._auth.fetch_profile()
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="PROFILE_FAILED",
                default_message="Could not refresh profile.",
            ) from exc
        if self._session.token != token or not self.is_authenticated:
            self._log.debug("Dropping profile for a session that ended meanwhile")
            return self._session
        self._transition(replace(self._session, user=user))
        return self._session

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _run_bootstrap(self) -> None:
        token = self._store.get(CREDENTIAL_KEY)
        if not token:
            self._log.info("No stored credential; starting signed out")
            self._transition(Session())
            return

        self._transition(Session(status="authenticating", token=token))
        self._gateway.set_credential(token)
        try:
            user = await self._verify()
        except SessionInvalidError as exc:
            if self._session.token == token:
                self._log.info("Stored credential rejected: %s", exc.message)
                self._discard_credential()
            return
        except asyncio.CancelledError:
            if self._session.token == token:
                self._log.info("Credential verification cancelled")
                self._discard_credential()
            raise
        if self._session.token != token or self._session.status != "authenticating":
            # A login or logout happened while the profile was in flight.
            return
        self._transition(Session(status="authenticated", user=user, token=token))
        self._log.info("Session restored for %s", user.email)

    def _discard_credential(self) -> None:
        self._store.remove(CREDENTIAL_KEY)
        self._gateway.set_credential(None)
        self._transition(Session())

    async def _verify(self) -> User:
        try:
            return await self._auth.fetch_profile()
        except Exception as exc:
            raise SessionInvalidError(str(exc) or "Profile verification failed.") from exc

    @staticmethod
    def _login_error(exc: Exception) -> UseCaseError:
        mapped = map_api_error(exc, default_code="LOGIN_FAILED", default_message="Login failed.")
        if isinstance(exc, RejectedError):
            return UseCaseError("LOGIN_FAILED", server_message(exc, "Login failed."), meta=mapped.meta)
        return mapped

    def _transition(self, session: Session) -> None:
        self._session = session
        self._log.debug("Session -> %s", session.status)
        for observer in list(self._observers):
            try:
                observer(session)
            except Exception:
                self._log.exception("Session observer failed")

    def _navigate(self, target: NavigationTarget) -> None:
        if self.on_navigate:
            self.on_navigate(target)


__all__ = ["AuthSessionManager", "NavigationTarget", "SessionObserver"]
