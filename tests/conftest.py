"""Shared test fixtures."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import pytest

from booking_chat.application.dto.upload import FileUpload
from booking_chat.application.exceptions import HistoryLoadFailedError, UploadFailedError
from booking_chat.application.ports.transport import AckCallback, ConnectOptions, EventHandler
from booking_chat.domain.entities.message import ChatMessage
from booking_chat.domain.entities.session import SessionIdentity
from booking_chat.services.session_manager import ChatSessionManager

TYPING_TIMEOUT = 0.2


def make_message(
    message_id: str = "msg-1",
    *,
    sender_id: str = "user-456",
    recipient_id: str = "user-123",
    content: str = "hello",
    type: str = "text",
    read: bool = False,
) -> ChatMessage:
    return ChatMessage(
        id=message_id,
        sender_id=sender_id,
        recipient_id=recipient_id,
        content=content,
        type=type,
        timestamp=datetime.now(timezone.utc),
        read=read,
    )


def wire_message(message_id: str = "msg-1", **overrides: Any) -> dict[str, Any]:
    payload = {
        "id": message_id,
        "senderId": "user-456",
        "recipientId": "user-123",
        "content": "Hello!",
        "type": "text",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "read": False,
    }
    payload.update(overrides)
    return payload


@dataclass
class FakeTransport:
    namespace: str
    options: ConnectOptions
    connected: bool = False
    handlers: dict[str, list[EventHandler]] = field(default_factory=dict)
    emitted: list[tuple[str, dict[str, Any], AckCallback | None]] = field(default_factory=list)
    disconnect_calls: int = 0

    def on(self, event: str, handler: EventHandler) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def emit(self, event: str, payload: dict[str, Any], callback: AckCallback | None = None) -> None:
        self.emitted.append((event, payload, callback))

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False

    def fire(self, event: str, payload: Any = None) -> None:
        if event == "connect":
            self.connected = True
        elif event == "disconnect":
            self.connected = False
        for handler in self.handlers.get(event, []):
            handler(payload)

    def payloads(self, event: str) -> list[dict[str, Any]]:
        return [p for e, p, _ in self.emitted if e == event]

    def ack(self, response: Any, event: str = "send_message") -> None:
        """Acknowledge the most recent emission of ``event``."""
        callback = [cb for e, _, cb in self.emitted if e == event][-1]
        assert callback is not None
        callback(response)


@dataclass
class FakeTransportFactory:
    created: list[FakeTransport] = field(default_factory=list)

    def __call__(self, namespace: str, options: ConnectOptions) -> FakeTransport:
        transport = FakeTransport(namespace=namespace, options=options)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


@dataclass
class FakeChatApi:
    history: list[ChatMessage] = field(default_factory=list)
    history_error: str | None = None
    history_gate: asyncio.Event | None = None
    upload_url: str = "https://x/file.pdf"
    upload_error: str | None = None
    history_calls: list[dict[str, Any]] = field(default_factory=list)
    uploads: list[FileUpload] = field(default_factory=list)

    async def fetch_history(
        self, identity: SessionIdentity, *, limit: int = 50, offset: int = 0,
    ) -> list[ChatMessage]:
        self.history_calls.append({"user_id": identity.user_id, "limit": limit, "offset": offset})
        if self.history_gate is not None:
            await self.history_gate.wait()
        if self.history_error:
            raise HistoryLoadFailedError(self.history_error)
        return list(self.history)

    async def upload_file(self, identity: SessionIdentity, file: FileUpload) -> str:
        self.uploads.append(file)
        if self.upload_error:
            raise UploadFailedError(self.upload_error)
        return self.upload_url


async def settle(manager: ChatSessionManager) -> None:
    """Let history loads started by ``connect`` events finish."""
    await asyncio.sleep(0)
    if manager._history_tasks:
        await asyncio.gather(*list(manager._history_tasks))


@pytest.fixture
def booking_identity() -> SessionIdentity:
    return SessionIdentity(user_id="user-123", booking_id="booking-456")


@pytest.fixture
def factory() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
def api() -> FakeChatApi:
    return FakeChatApi()


@pytest.fixture
def manager(factory, api) -> ChatSessionManager:
    return ChatSessionManager(factory, api, typing_timeout=TYPING_TIMEOUT)
