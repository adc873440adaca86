"""Upload a file over REST, then announce it in the room."""
from __future__ import annotations

import logging

from booking_chat.application.dto.upload import FileUpload
from booking_chat.application.exceptions import ChatError, NotConnectedError
from booking_chat.application.ports.chat_api import ChatApi
from booking_chat.domain.entities.session import SessionIdentity
from booking_chat.domain.value_objects.enums import MessageType
from booking_chat.services.send_coordinator import SendCoordinator
from booking_chat.services.session_state import SessionState

logger = logging.getLogger(__name__)

FILE_REJECT_REASON = "Failed to send file"


class FileUploadOrchestrator:
    def __init__(
        self,
        identity: SessionIdentity,
        api: ChatApi,
        coordinator: SendCoordinator,
        state: SessionState,
    ) -> None:
        self._identity = identity
        self._api = api
        self._coordinator = coordinator
        self._state = state

    async def send_file(self, file: FileUpload) -> None:
        """Upload ``file`` and send a ``file`` message pointing at it.

        Raises ``UploadFailedError`` when the upload fails, otherwise
        whatever ``SendCoordinator.send`` raises. A failed send leaves the
        uploaded resource in place.
        """
        if not self._state.connected:
            raise NotConnectedError()

        with self._state.busy():
            url = await self._api.upload_file(self._identity, file)
        logger.debug("Uploaded %s (%d bytes) to %s", file.name, file.size, url)

        payload = {
            "content": f"Sent a file: {file.name}",
            "type": MessageType.FILE.value,
            "fileName": file.name,
            "fileUrl": url,
            "fileSize": file.size,
            "recipientId": self._identity.recipient_id,
            **self._identity.scope,
        }
        try:
            await self._coordinator.send(payload, default_reason=FILE_REJECT_REASON)
        except ChatError:
            logger.warning("File %s uploaded to %s but the message was not sent", file.name, url)
            raise
