"""Ordered, id-deduplicated message collection."""
from __future__ import annotations

import dataclasses
import logging
from typing import Iterable

from booking_chat.domain.entities.message import ChatMessage

logger = logging.getLogger(__name__)


class MessageStore:
    """Insertion-ordered messages keyed by server id.

    Every method runs to completion without awaiting, so a history merge
    can never interleave with a live append on the event loop.
    """

    def __init__(self) -> None:
        self._messages: dict[str, ChatMessage] = {}

    def __len__(self) -> int:
        return len(self._messages)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._messages

    def get(self, message_id: str) -> ChatMessage | None:
        return self._messages.get(message_id)

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages.values())

    def append(self, message: ChatMessage) -> bool:
        """Insert at the end. Returns False when the id is already stored."""
        existing = self._messages.get(message.id)
        if existing is not None:
            # Same id again: keep the position, refresh the content.
            self._messages[message.id] = _merge(existing, message)
            return False
        self._messages[message.id] = message
        return True

    def seed_history(self, history: Iterable[ChatMessage]) -> None:
        """Merge a server-ordered history page into the store.

        History rows come first in server order; anything already stored
        but absent from the page keeps its relative order after them.
        """
        merged: dict[str, ChatMessage] = {}
        for message in history:
            previous = merged.get(message.id) or self._messages.get(message.id)
            merged[message.id] = _merge(previous, message) if previous else message
        seeded = len(merged)
        for message_id, message in self._messages.items():
            if message_id not in merged:
                merged[message_id] = message
        self._messages = merged
        logger.debug("Seeded %d history messages (total=%d)", seeded, len(merged))

    def mark_read(self, message_id: str) -> bool:
        message = self._messages.get(message_id)
        if message is None:
            logger.debug("mark_read for unknown message %s ignored", message_id)
            return False
        if not message.read:
            self._messages[message_id] = dataclasses.replace(message, read=True)
        return True


def _merge(old: ChatMessage, new: ChatMessage) -> ChatMessage:
    # read only ever flips false -> true
    if old.read and not new.read:
        return dataclasses.replace(new, read=True)
    return new
