from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

EventHandler = Callable[[Any], None]
AckCallback = Callable[[Any], None]


@dataclass(frozen=True, slots=True)
class ConnectOptions:
    auth: dict[str, Any]
    transports: list[str] = field(default_factory=lambda: ["websocket", "polling"])


class Transport(Protocol):
    """A pub/sub socket handle that is already connecting when returned.

    Handlers receive the event payload (``None`` for payload-less events).
    ``emit`` never blocks; the optional callback is invoked once with the
    server acknowledgment.
    """

    @property
    def connected(self) -> bool: ...

    def on(self, event: str, handler: EventHandler) -> None: ...

    def emit(self, event: str, payload: dict[str, Any], callback: AckCallback | None = None) -> None: ...

    async def disconnect(self) -> None: ...


class TransportFactory(Protocol):
    def __call__(self, namespace: str, options: ConnectOptions) -> Transport: ...
