"""Remote typing set and the local typing debounce timer."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Emit = Callable[[str, dict[str, Any]], None]

TYPING_EVENT = "typing"
STOP_TYPING_EVENT = "stop_typing"


class TypingIndicatorTracker:
    """Tracks who is typing and debounces the local ``typing`` signal.

    A local typing episode starts with exactly one ``typing`` emission and
    ends with exactly one ``stop_typing`` emission, ``timeout`` seconds
    after the last ``start_local_typing`` call. At most one timer is alive.
    """

    def __init__(self, emit: Emit, *, timeout: float = 3.0) -> None:
        self._emit = emit
        self._timeout = timeout
        self._remote: set[str] = set()
        self._timer: asyncio.TimerHandle | None = None
        self._scope: dict[str, Any] | None = None

    @property
    def typing_users(self) -> frozenset[str]:
        return frozenset(self._remote)

    @property
    def is_local_typing(self) -> bool:
        return self._timer is not None

    def on_remote_typing_start(self, user_id: str) -> None:
        self._remote.add(user_id)

    def on_remote_typing_stop(self, user_id: str) -> None:
        self._remote.discard(user_id)

    def start_local_typing(self, scope: dict[str, Any]) -> None:
        if self._timer is None:
            self._scope = dict(scope)
            self._emit(TYPING_EVENT, dict(self._scope))
        else:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().call_later(self._timeout, self._on_timeout)

    def stop_local_typing(self) -> None:
        """End the current episode now, emitting its single ``stop_typing``."""
        if self._timer is None:
            return
        scope = self._disarm()
        self._emit(STOP_TYPING_EVENT, scope)

    def cancel_local_typing(self) -> None:
        """Drop the timer without emitting."""
        if self._timer is not None:
            self._disarm()
            logger.debug("Local typing timer cancelled")

    def _on_timeout(self) -> None:
        logger.debug("Local typing idle for %.1fs", self._timeout)
        self.stop_local_typing()

    def _disarm(self) -> dict[str, Any]:
        # cancel() on an already-fired handle is a no-op
        self._timer.cancel()
        self._timer = None
        scope, self._scope = self._scope or {}, None
        return scope
