"""Single chokepoint for outbound NotesFlow API calls.

This module wraps one ``requests.Session`` so every REST adapter shares the
bearer credential, JSON headers, envelope unwrapping and error typing.

Dependencies:
    - ``requests`` for network I/O.
    - ``asyncio.to_thread`` so blocking calls suspend the caller's coroutine
      instead of the event loop.

Call context:
    - Constructed once by ``notesflow.app.controller.AppController``.
    - ``AuthSessionManager`` is the only writer of the credential; other
      adapters only issue requests through ``request``.
    - No retries: create endpoints are not idempotent. No timeout unless
      ``request_timeout_s`` is configured.
    - ``requests.Session`` is not documented as thread-safe, so worker
      threads send through it one at a time.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests
from requests import exceptions as req_exc

from notesflow.adapters.api_errors import (
    NetworkUnreachableError,
    RejectedError,
    parse_error_payload,
    rejection_message,
)

_log = logging.getLogger(__name__)


@dataclass
class GatewayConfig:
    """Transport settings for gateway calls.

    Attributes:
        base_url: API root such as ``https://host/api``.
        request_timeout_s: Per-request timeout in seconds, ``None`` for none.
    """
    base_url: str
    request_timeout_s: Optional[float] = None


class ApiGateway:
    """Issue JSON requests, attach the bearer credential, unwrap envelopes."""

    def __init__(
        self,
        base_url: str,
        *,
        request_timeout_s: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Create a gateway bound to one API root.

        Args:
            base_url: API root URL; a trailing slash is ignored.
            request_timeout_s: Optional timeout in seconds (``None`` or ``0``
                disables it).
            session: Pre-built ``requests.Session`` (tests pass stubs).
        """
        if not base_url or not base_url.strip():
            raise ValueError("ApiGateway requires a base URL")
        self.cfg = GatewayConfig(
            base_url=base_url.strip().rstrip("/"),
            request_timeout_s=request_timeout_s or None,
        )
        self.session = session or requests.Session()
        self._send_lock = threading.Lock()
        self._credential: Optional[str] = None

    @property
    def credential(self) -> Optional[str]:
        return self._credential

    def set_credential(self, token: Optional[str]) -> None:
        """Replace the process-wide bearer credential; in-flight calls keep theirs."""
        self._credential = token or None

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self._credential:
            headers["Authorization"] = f"Bearer {self._credential}"
        return headers

    def _make_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.cfg.base_url}{path}"

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Optional[Mapping[str, Any]] = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Send one request and return the envelope ``data`` payload.

        Args:
            path: Endpoint path relative to the API root, e.g. ``/notes``.
            method: HTTP verb.
            body: Optional JSON object body.
            params: Optional query parameters.

        Returns:
            The ``data`` member of the response envelope, ``{}`` when absent.

        Raises:
            NetworkUnreachableError: No response was received.
            RejectedError: Non-2xx status, ``success: false`` envelope, or an
                unparseable 2xx body.
        """
        method = method.upper()
        url = self._make_url(path)
        context = f"{method} {path}"
        # Captured here so a credential change never leaks into this call.
        headers = self._headers()
        data = None if body is None else json.dumps(dict(body))
        _log.debug("-> %s", context)
        resp = await asyncio.to_thread(self._send, method, url, headers, data, params, context)
        _log.debug("<- %s HTTP %s", context, resp.status_code)
        return self._unwrap(resp, context)

    def _send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        data: Optional[str],
        params: Optional[Mapping[str, Any]],
        context: str,
    ) -> requests.Response:
        try:
            with self._send_lock:
                return self.session.request(
                    method,
                    url,
                    data=data,
                    params=dict(params) if params else None,
                    headers=headers,
                    timeout=self.cfg.request_timeout_s,
                )
        except req_exc.RequestException as exc:
            raise NetworkUnreachableError(f"Could not reach {url}", context=context) from exc

    @staticmethod
    def _unwrap(resp: requests.Response, context: str) -> Any:
        status = resp.status_code
        payload = parse_error_payload(resp)
        if not 200 <= status < 300:
            raise RejectedError(
                status,
                rejection_message(status, payload),
                payload=payload,
                context=context,
            )
        if payload is None:
            if not (getattr(resp, "text", "") or "").strip():
                return {}
            raise RejectedError(status, "Invalid JSON response", context=context)
        if not isinstance(payload, dict):
            raise RejectedError(status, "Invalid JSON response shape: expected object", context=context)
        if payload.get("success") is False:
            raise RejectedError(
                status,
                rejection_message(status, payload),
                payload=payload,
                context=context,
            )
        data = payload.get("data")
        return {} if data is None else data


__all__ = ["ApiGateway", "GatewayConfig"]
