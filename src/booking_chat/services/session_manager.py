"""Chat session lifecycle and inbound event routing."""
from __future__ import annotations

import asyncio
import functools
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable

from pydantic import ValidationError

from booking_chat.application.dto.upload import FileUpload
from booking_chat.application.exceptions import ChatError, HistoryLoadFailedError
from booking_chat.application.ports.chat_api import ChatApi
from booking_chat.application.ports.transport import ConnectOptions, Transport, TransportFactory
from booking_chat.config import settings
from booking_chat.domain.entities.message import ChatMessage
from booking_chat.domain.entities.session import SessionIdentity
from booking_chat.domain.value_objects.enums import ConnectionStatus, MessageType
from booking_chat.infrastructure.transport.mappers import to_entity
from booking_chat.infrastructure.transport.protocol import ReadEvent, TypingEvent, WireMessage
from booking_chat.services.file_upload import FileUploadOrchestrator
from booking_chat.services.message_store import MessageStore
from booking_chat.services.send_coordinator import SendCoordinator
from booking_chat.services.session_state import SessionState
from booking_chat.services.typing_tracker import TypingIndicatorTracker

logger = logging.getLogger(__name__)

MARK_READ_EVENT = "mark_read"


def _inbound(handler: Callable[[ChatSessionManager, Any], None]) -> Callable[[ChatSessionManager, Any], None]:
    """Inbound handlers log bad payloads instead of raising into the transport."""

    @functools.wraps(handler)
    def wrapper(self: ChatSessionManager, payload: Any = None) -> None:
        try:
            handler(self, payload)
        except ValidationError as exc:
            logger.warning("Dropping malformed %s payload: %s", handler.__name__, exc)
        except Exception:
            logger.exception("Error handling inbound event in %s", handler.__name__)

    return wrapper


class ChatSessionManager:
    """Owns the transport connection for one chat room.

    Inbound ``connect``/``disconnect``/``connect_error``/``message``/
    ``typing``/``stop_typing``/``message_read`` events are routed into the
    message store and typing tracker. Every handler runs to completion
    without awaiting, so events are applied strictly in delivery order.
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        api: ChatApi,
        *,
        namespace: str | None = None,
        transports: list[str] | None = None,
        typing_timeout: float | None = None,
        history_page_size: int | None = None,
    ) -> None:
        self._transport_factory = transport_factory
        self._api = api
        self._namespace = namespace or settings.CHAT_NAMESPACE
        self._transports = list(transports or settings.CHAT_TRANSPORTS)
        self._history_page_size = history_page_size or settings.HISTORY_PAGE_SIZE

        self._state = SessionState()
        self._store = MessageStore()
        self._typing = TypingIndicatorTracker(
            self._emit,
            timeout=settings.TYPING_TIMEOUT_SECONDS if typing_timeout is None else typing_timeout,
        )
        self._coordinator = SendCoordinator(self._state)

        self._identity: SessionIdentity | None = None
        self._uploads: FileUploadOrchestrator | None = None
        self._transport: Transport | None = None
        self._history_tasks: set[asyncio.Task[list[ChatMessage]]] = set()
        self._closed = False

    # -- observable state ---------------------------------------------------

    @property
    def identity(self) -> SessionIdentity | None:
        return self._identity

    @property
    def connected(self) -> bool:
        return self._state.connected

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self._store.messages

    @property
    def typing(self) -> tuple[str, ...]:
        """Remote users currently typing, never including the local user."""
        me = self._identity.user_id if self._identity else None
        return tuple(sorted(u for u in self._typing.typing_users if u != me))

    @property
    def error(self) -> str | None:
        return self._state.error

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def closed(self) -> bool:
        return self._closed

    # -- lifecycle ------------------------------------------------------------

    def open(self, identity: SessionIdentity) -> None:
        if self._identity is not None:
            raise ChatError("Session already opened")
        self._identity = identity
        self._uploads = FileUploadOrchestrator(identity, self._api, self._coordinator, self._state)
        if identity.auto_connect:
            self.connect()

    def connect(self) -> None:
        """Start connecting. A no-op while a transport handle is live."""
        identity = self._require_identity()
        if self._closed:
            raise ChatError("Session is closed")
        if self._transport is not None:
            return

        transport = self._transport_factory(
            self._namespace,
            ConnectOptions(auth=identity.auth, transports=list(self._transports)),
        )
        transport.on("connect", self._on_connect)
        transport.on("disconnect", self._on_disconnect)
        transport.on("connect_error", self._on_connect_error)
        transport.on("message", self._on_message)
        transport.on("typing", self._on_typing)
        transport.on("stop_typing", self._on_stop_typing)
        transport.on("message_read", self._on_message_read)

        join = identity.join_event
        if join is not None:
            event, payload = join
            transport.emit(event, payload)

        self._transport = transport
        self._coordinator.bind(transport)
        logger.info(
            "Chat session connecting: user=%s booking=%s gig=%s",
            identity.user_id, identity.booking_id, identity.gig_id,
        )

    async def disconnect(self) -> None:
        """Drop the transport but keep the session; ``connect()`` reopens it."""
        transport, self._transport = self._transport, None
        self._coordinator.bind(None)
        self._state.status = ConnectionStatus.DISCONNECTED
        try:
            if transport is not None:
                await transport.disconnect()
                logger.info("Chat transport dropped by caller")
        finally:
            self._typing.cancel_local_typing()

    async def close(self) -> None:
        """Tear the session down. Safe to call any number of times."""
        if self._closed:
            return
        self._closed = True
        await self.disconnect()
        logger.info("Chat session closed")

    # -- outbound operations --------------------------------------------------

    async def send_message(self, content: str) -> None:
        identity = self._require_identity()
        await self._coordinator.send({
            "content": content,
            "recipientId": identity.recipient_id,
            **identity.scope,
            "type": MessageType.TEXT.value,
        })

    async def send_file(self, file: FileUpload) -> None:
        if self._uploads is None:
            raise ChatError("Session not opened")
        await self._uploads.send_file(file)

    def mark_as_read(self, message_id: str) -> None:
        if not self._state.connected:
            return
        self._emit(MARK_READ_EVENT, {"messageId": message_id})
        self._store.mark_read(message_id)

    def start_typing(self) -> None:
        identity = self._require_identity()
        if not self._state.connected:
            return
        self._typing.start_local_typing(identity.scope)

    def stop_typing(self) -> None:
        self._typing.stop_local_typing()

    async def load_history(self, limit: int | None = None, offset: int = 0) -> list[ChatMessage]:
        """Fetch a history page and merge it into ``messages``.

        Failures are reported through ``error`` and yield an empty list.
        """
        identity = self._require_identity()
        with self._state.busy():
            self._state.error = None
            try:
                history = await self._api.fetch_history(
                    identity, limit=limit or self._history_page_size, offset=offset,
                )
            except HistoryLoadFailedError as exc:
                logger.warning("History load failed: %s", exc.detail)
                self._state.error = exc.detail
                return []
            self._store.seed_history(history)
        return history

    # -- inbound events -------------------------------------------------------

    @_inbound
    def _on_connect(self, _payload: Any) -> None:
        self._state.status = ConnectionStatus.CONNECTED
        self._state.error = None
        logger.info("Chat transport connected")
        task = asyncio.get_running_loop().create_task(self.load_history(), name="chat-history-load")
        self._history_tasks.add(task)
        task.add_done_callback(self._history_tasks.discard)

    @_inbound
    def _on_disconnect(self, _payload: Any) -> None:
        self._state.status = ConnectionStatus.DISCONNECTED
        self._typing.cancel_local_typing()
        logger.info("Chat transport disconnected")

    @_inbound
    def _on_connect_error(self, payload: Any) -> None:
        self._state.status = ConnectionStatus.DISCONNECTED
        self._state.error = f"Connection failed: {_reason(payload)}"
        logger.warning(self._state.error)

    @_inbound
    def _on_message(self, payload: Any) -> None:
        self._store.append(to_entity(WireMessage.model_validate(payload)))

    @_inbound
    def _on_typing(self, payload: Any) -> None:
        self._typing.on_remote_typing_start(TypingEvent.model_validate(payload).user_id)

    @_inbound
    def _on_stop_typing(self, payload: Any) -> None:
        self._typing.on_remote_typing_stop(TypingEvent.model_validate(payload).user_id)

    @_inbound
    def _on_message_read(self, payload: Any) -> None:
        self._store.mark_read(ReadEvent.model_validate(payload).message_id)

    # -- helpers --------------------------------------------------------------

    def _emit(self, event: str, payload: dict[str, Any]) -> None:
        if self._transport is None:
            logger.debug("No transport, dropping %s", event)
            return
        self._transport.emit(event, payload)

    def _require_identity(self) -> SessionIdentity:
        if self._identity is None:
            raise ChatError("Session not opened")
        return self._identity


def _reason(payload: Any) -> str:
    if isinstance(payload, dict):
        return str(payload.get("message") or payload)
    return str(payload)


@asynccontextmanager
async def open_session(
    identity: SessionIdentity,
    transport_factory: TransportFactory,
    api: ChatApi,
    **kwargs: Any,
) -> AsyncIterator[ChatSessionManager]:
    """Open a session and close it on every exit path."""
    manager = ChatSessionManager(transport_factory, api, **kwargs)
    try:
        manager.open(identity)
        yield manager
    finally:
        await manager.close()
