from __future__ import annotations

from booking_chat.domain.entities.message import ChatMessage
from booking_chat.infrastructure.transport.protocol import WireMessage


def to_entity(wire: WireMessage) -> ChatMessage:
    return ChatMessage(
        id=wire.id,
        sender_id=wire.sender_id,
        recipient_id=wire.recipient_id,
        content=wire.content,
        type=wire.type,
        timestamp=wire.timestamp,
        read=wire.read,
        booking_id=wire.booking_id,
        gig_id=wire.gig_id,
        file_name=wire.file_name,
        file_url=wire.file_url,
        file_size=wire.file_size,
    )
