"""Socket.IO payload models for the /chat namespace."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WireMessage(_Wire):
    """Server → Client ``message`` payload, also one history row."""

    id: str
    sender_id: str = Field(alias="senderId")
    recipient_id: str = Field(alias="recipientId")
    content: str
    type: str = "text"
    timestamp: datetime
    read: bool = False
    booking_id: str | None = Field(default=None, alias="bookingId")
    gig_id: str | None = Field(default=None, alias="gigId")
    file_name: str | None = Field(default=None, alias="fileName")
    file_url: str | None = Field(default=None, alias="fileUrl")
    file_size: int | None = Field(default=None, alias="fileSize")


class TypingEvent(_Wire):
    """``typing`` / ``stop_typing`` payload."""

    user_id: str = Field(alias="userId")


class ReadEvent(_Wire):
    """``message_read`` payload."""

    message_id: str = Field(alias="messageId")


class AckResponse(_Wire):
    """Acknowledgment for ``send_message``.

    Servers report the failure reason under either ``reason`` or ``error``.
    """

    success: bool = False
    reason: str | None = None
    error: str | None = None

    @property
    def failure_reason(self) -> str | None:
        return self.reason or self.error


class UploadResponse(_Wire):
    url: str
