from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class ChatMessage:
    id: str
    sender_id: str
    recipient_id: str
    content: str
    type: str
    timestamp: datetime
    read: bool = False
    booking_id: str | None = None
    gig_id: str | None = None
    file_name: str | None = None
    file_url: str | None = None
    file_size: int | None = None
