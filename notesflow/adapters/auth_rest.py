"""REST adapter for ``/auth/*`` endpoints."""

from __future__ import annotations

from typing import Tuple

from notesflow.adapters.api_errors import RejectedError
from notesflow.adapters.api_gateway import ApiGateway
from notesflow.domain.entities import User
from notesflow.domain.mapping import user_from_payload
from notesflow.domain.ports import AuthPort


class AuthRestAdapter(AuthPort):
    """Login and profile calls routed through the shared gateway."""

    def __init__(self, gateway: ApiGateway) -> None:
        self.gateway = gateway

    async def login(self, email: str, password: str) -> Tuple[str, User]:
        """``POST /auth/login`` returning the issued token and the user."""
        data = await self.gateway.request(
            "/auth/login",
            "POST",
            {"email": email, "password": password},
        )
        token = str((data or {}).get("token") or "").strip()
        if not token:
            raise RejectedError(
                200,
                "Invalid login payload: token missing",
                payload=data,
                context="POST /auth/login",
            )
        return token, user_from_payload(data)

    async def fetch_profile(self) -> User:
        """``GET /auth/profile`` using the gateway's current credential."""
        data = await self.gateway.request("/auth/profile")
        return user_from_payload(data)


__all__ = ["AuthRestAdapter"]
