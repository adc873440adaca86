from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from booking_chat.domain.value_objects.enums import ConnectionStatus


@dataclass(slots=True)
class SessionState:
    """Observable connection state shared by the session components.

    ``status`` changes only on transport ``connect`` / ``disconnect`` /
    ``connect_error`` events, except that tearing the transport down locally
    (``disconnect()`` / ``close()``) marks it disconnected without waiting for
    the dropped handle to report it.
    """

    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    error: str | None = None
    pending: int = 0

    @property
    def connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    @property
    def loading(self) -> bool:
        return self.pending > 0

    @contextmanager
    def busy(self) -> Iterator[None]:
        """Hold ``loading`` true for the duration of an awaited operation."""
        self.pending += 1
        try:
            yield
        finally:
            self.pending -= 1
