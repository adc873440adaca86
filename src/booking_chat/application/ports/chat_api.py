from __future__ import annotations

from typing import Protocol

from booking_chat.application.dto.upload import FileUpload
from booking_chat.domain.entities.message import ChatMessage
from booking_chat.domain.entities.session import SessionIdentity


class ChatApi(Protocol):
    """REST side of the chat: history pages and file storage.

    ``fetch_history`` raises ``HistoryLoadFailedError``; ``upload_file``
    raises ``UploadFailedError`` and returns the stored resource URL.
    """

    async def fetch_history(
        self, identity: SessionIdentity, *, limit: int = 50, offset: int = 0,
    ) -> list[ChatMessage]: ...

    async def upload_file(self, identity: SessionIdentity, file: FileUpload) -> str: ...
