"""Translate adapter errors into user-facing UseCaseError instances."""

from __future__ import annotations

from typing import Optional

from notesflow.adapters.api_errors import (
    GENERIC_REJECTION,
    GatewayError,
    NetworkUnreachableError,
    QuotaExceededError,
    RejectedError,
)
from notesflow.domain.ports import UseCaseError


def map_api_error(
    exc: Exception,
    *,
    default_code: str,
    default_message: Optional[str] = None,
) -> UseCaseError:
    """Map adapter exceptions to stable UseCaseError codes.

    Server messages are preserved so callers can show them inline; the
    generic gateway text is replaced by ``default_message`` when given.

    Args:
        exc: Exception raised by an adapter or port.
        default_code: Code used for rejections without a specific mapping and
            for unexpected exceptions.
        default_message: Fallback text when the server supplied none.

    Returns:
        UseCaseError carrying ``status`` in ``meta`` for rejections.
    """
    if isinstance(exc, UseCaseError):
        return exc
    if isinstance(exc, NetworkUnreachableError):
        return UseCaseError("NETWORK_UNREACHABLE", "Network error occurred. Check connection.")
    if isinstance(exc, QuotaExceededError):
        return UseCaseError(
            "QUOTA_EXCEEDED",
            server_message(exc, "Note limit reached. Upgrade to Pro for unlimited notes."),
            meta={"status": exc.status},
        )
    if isinstance(exc, RejectedError):
        status = exc.status or 0
        meta = {"status": status}
        if status == 404:
            return UseCaseError("NOT_FOUND", server_message(exc, "Not found."), meta=meta)
        if status in (401, 403):
            return UseCaseError(
                "AUTH_FAILED",
                server_message(exc, "Not authorized. Please sign in again."),
                meta=meta,
            )
        return UseCaseError(
            default_code,
            server_message(exc, default_message or exc.message),
            meta=meta,
        )
    if isinstance(exc, GatewayError):
        return UseCaseError(default_code, exc.message or default_message or "Request failed.")

    message = default_message or str(exc) or "Unexpected error."
    return UseCaseError(default_code, message)


def server_message(exc: RejectedError, fallback: str) -> str:
    """Return the server-provided message, or ``fallback`` for generic text."""
    text = (exc.message or "").strip()
    if not text or text.startswith(GENERIC_REJECTION):
        return fallback
    return text


__all__ = ["map_api_error", "server_message"]
