from __future__ import annotations

from typing import Any, Optional

GENERIC_REJECTION = "Request failed"


class GatewayError(RuntimeError):
    """Base class for ApiGateway failures."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload
        self.context = context


class NetworkUnreachableError(GatewayError):
    """No response was received (DNS, connection refused, reset, ...)."""

    def __init__(self, message: str, *, context: Optional[str] = None) -> None:
        super().__init__(message, context=context)


class RejectedError(GatewayError):
    """The server answered but declined the request."""

    def __init__(
        self,
        status: int,
        message: str,
        *,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message, status=status, payload=payload, context=context)


class QuotaExceededError(RejectedError):
    """Server-declared over-limit on note creation."""


def parse_error_payload(resp: Any) -> Any:
    """Best-effort extraction of error payload without raising."""
    try:
        return resp.json()
    except ValueError:
        return None


def rejection_message(status: int, payload: Any) -> str:
    """Server message when present, else a generic message naming the status."""
    detail = first_string(payload) if isinstance(payload, (dict, list)) else None
    if detail:
        return detail
    return f"{GENERIC_REJECTION} (HTTP {status})"


def first_string(payload: Any) -> Optional[str]:
    if isinstance(payload, str):
        text = payload.strip()
        return text or None
    if isinstance(payload, dict):
        for key in ("message", "detail", "error", "title"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
            if isinstance(value, (list, dict)):
                candidate = first_string(value)
                if candidate:
                    return candidate
    if isinstance(payload, list):
        for item in payload:
            candidate = first_string(item)
            if candidate:
                return candidate
    return None


__all__ = [
    "GENERIC_REJECTION",
    "GatewayError",
    "NetworkUnreachableError",
    "QuotaExceededError",
    "RejectedError",
    "first_string",
    "parse_error_payload",
    "rejection_message",
]
