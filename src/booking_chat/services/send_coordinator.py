"""Awaitable wrapper around acknowledgment-style emissions."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from booking_chat.application.exceptions import NotConnectedError, SendRejectedError
from booking_chat.application.ports.transport import Transport
from booking_chat.infrastructure.transport.protocol import AckResponse
from booking_chat.services.session_state import SessionState

logger = logging.getLogger(__name__)

SEND_MESSAGE_EVENT = "send_message"
DEFAULT_REJECT_REASON = "Failed to send message"


class SendCoordinator:
    """Emits ``send_message`` and resolves once the server acknowledges it.

    The message store is not touched here: the server echoes accepted
    messages back as ``message`` events.
    """

    def __init__(self, state: SessionState) -> None:
        self._state = state
        self._transport: Transport | None = None

    def bind(self, transport: Transport | None) -> None:
        self._transport = transport

    async def send(
        self,
        payload: dict[str, Any],
        *,
        default_reason: str = DEFAULT_REJECT_REASON,
    ) -> None:
        transport = self._transport
        if transport is None or not self._state.connected:
            raise NotConnectedError()

        loop = asyncio.get_running_loop()
        ack: asyncio.Future[Any] = loop.create_future()

        def _on_ack(response: Any) -> None:
            # one-shot: late or repeated acks are dropped
            if not ack.done():
                ack.set_result(response)

        with self._state.busy():
            transport.emit(SEND_MESSAGE_EVENT, payload, _on_ack)
            raw = await ack

        try:
            response = AckResponse.model_validate(raw if isinstance(raw, dict) else {})
        except ValidationError:
            logger.warning("Malformed send_message ack: %r", raw)
            raise SendRejectedError(default_reason) from None

        if not response.success:
            reason = response.failure_reason or default_reason
            logger.info("send_message rejected: %s", reason)
            raise SendRejectedError(reason)
