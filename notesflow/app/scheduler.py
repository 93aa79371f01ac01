"""Keyed one-shot timers with cancellation for controller debouncing.

Controllers receive a ``TimerScheduler`` built from a pair of
``schedule(delay_ms, callback) -> token`` / ``cancel(token)`` callables, so the
same controller code runs on an asyncio loop (``loop.call_later``), on a Tk
root (``after`` / ``after_cancel``) or on a manual clock in tests.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

ScheduleFn = Callable[[int, Callable[[], None]], Any]
CancelFn = Callable[[Any], None]


@dataclass
class TimerHandle:
    """Timer token associated with a single channel.

    Attributes:
        key: Channel key (for example ``search``).
        token: Token returned by the underlying schedule function.
    """
    key: str
    token: Any


class TimerScheduler:
    """Manage at most one pending timer per key."""

    def __init__(self, schedule: ScheduleFn, cancel: CancelFn) -> None:
        """Store schedule/cancel functions and initialize handle registry.

        Args:
            schedule: Function compatible with ``after(delay_ms, callback)``.
            cancel: Function compatible with ``after_cancel(token)``.
        """
        self._schedule = schedule
        self._cancel = cancel
        self._handles: Dict[str, TimerHandle] = {}
        self._log = logging.getLogger(__name__)

    @classmethod
    def for_asyncio(cls, loop: Optional[asyncio.AbstractEventLoop] = None) -> "TimerScheduler":
        """Build a scheduler on ``loop.call_later`` (default: the running loop)."""

        def _loop() -> asyncio.AbstractEventLoop:
            return loop or asyncio.get_running_loop()

        def schedule(delay_ms: int, callback: Callable[[], None]) -> asyncio.TimerHandle:
            return _loop().call_later(delay_ms / 1000.0, callback)

        def cancel(token: asyncio.TimerHandle) -> None:
            token.cancel()

        return cls(schedule, cancel)

    def schedule(self, key: str, delay_ms: int, callback: Callable[[], None]) -> None:
        """Schedule ``callback`` for ``key``, replacing any pending timer.

        Args:
            key: Channel key.
            delay_ms: Delay in milliseconds measured from this call.
            callback: Function executed once when the delay elapses.
        """
        delay = max(0, int(delay_ms))
        self.cancel(key)
        holder: Dict[str, Any] = {}

        def _fire() -> None:
            current = self._handles.get(key)
            if current is None or current.token is not holder.get("token"):
                return
            del self._handles[key]
            callback()

        token = self._schedule(delay, _fire)
        holder["token"] = token
        self._handles[key] = TimerHandle(key=key, token=token)

    def cancel(self, key: str) -> None:
        """Cancel a pending timer for ``key``; unknown keys are ignored."""
        handle = self._handles.pop(key, None)
        if not handle:
            return
        try:
            self._cancel(handle.token)
        except Exception:
            self._log.debug("Timer %s already gone", key, exc_info=True)

    def cancel_all(self) -> None:
        for key in list(self._handles.keys()):
            self.cancel(key)

    def is_pending(self, key: str) -> bool:
        return key in self._handles

    def handle_for(self, key: str) -> Optional[TimerHandle]:
        """Return the current handle for a key, if scheduled."""
        return self._handles.get(key)


__all__ = ["TimerHandle", "TimerScheduler"]
