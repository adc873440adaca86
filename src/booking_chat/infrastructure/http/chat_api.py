"""REST client for chat history and file storage."""
from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from booking_chat.application.dto.upload import FileUpload
from booking_chat.application.exceptions import HistoryLoadFailedError, UploadFailedError
from booking_chat.config import settings
from booking_chat.domain.entities.message import ChatMessage
from booking_chat.domain.entities.session import SessionIdentity
from booking_chat.infrastructure.transport.mappers import to_entity
from booking_chat.infrastructure.transport.protocol import UploadResponse, WireMessage

logger = logging.getLogger(__name__)

_history_adapter = TypeAdapter(list[WireMessage])


class HttpxChatApi:
    """Implements application.ports.chat_api.ChatApi."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        history_path: str | None = None,
        upload_path: str | None = None,
    ) -> None:
        self._client = client
        self._history_path = history_path or settings.HISTORY_PATH
        self._upload_path = upload_path or settings.UPLOAD_PATH

    async def fetch_history(
        self, identity: SessionIdentity, *, limit: int = 50, offset: int = 0,
    ) -> list[ChatMessage]:
        params: dict[str, Any] = {
            "userId": identity.user_id,
            "limit": str(limit),
            "offset": str(offset),
        }
        if identity.booking_id:
            params["bookingId"] = identity.booking_id
        if identity.gig_id:
            params["gigId"] = identity.gig_id

        try:
            resp = await self._client.get(self._history_path, params=params)
        except httpx.HTTPError as exc:
            raise HistoryLoadFailedError(f"Failed to load chat history: {exc}") from exc
        if resp.is_error:
            raise HistoryLoadFailedError(f"Failed to load chat history: {resp.reason_phrase}")

        try:
            rows = _history_adapter.validate_python(resp.json())
        except (ValueError, ValidationError) as exc:
            raise HistoryLoadFailedError(f"Failed to load chat history: {exc}") from exc
        logger.debug("Loaded %d history messages (offset=%d)", len(rows), offset)
        return [to_entity(row) for row in rows]

    async def upload_file(self, identity: SessionIdentity, file: FileUpload) -> str:
        data = {
            "userId": identity.user_id,
            "bookingId": identity.booking_id or "",
            "gigId": identity.gig_id or "",
        }
        files = {"file": (file.name, file.content, file.content_type)}

        try:
            resp = await self._client.post(self._upload_path, data=data, files=files)
        except httpx.HTTPError as exc:
            raise UploadFailedError(f"File upload failed: {exc}") from exc
        if resp.is_error:
            raise UploadFailedError(f"File upload failed: {resp.reason_phrase}")

        try:
            return UploadResponse.model_validate(resp.json()).url
        except (ValueError, ValidationError) as exc:
            raise UploadFailedError(f"File upload failed: {exc}") from exc
