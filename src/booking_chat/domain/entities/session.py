from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class SessionIdentity:
    """Who is chatting and in which room.

    ``booking_id`` and ``gig_id`` both scope the room; when both are set
    the booking wins.
    """

    user_id: str
    booking_id: str | None = None
    gig_id: str | None = None
    auto_connect: bool = True

    @property
    def auth(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "bookingId": self.booking_id,
            "gigId": self.gig_id,
        }

    @property
    def scope(self) -> dict[str, Any]:
        """Room scope sent with typing signals and outbound messages."""
        return {"bookingId": self.booking_id, "gigId": self.gig_id}

    @property
    def join_event(self) -> tuple[str, dict[str, Any]] | None:
        if self.booking_id:
            return "join_booking_room", {"bookingId": self.booking_id}
        if self.gig_id:
            return "join_gig_room", {"gigId": self.gig_id}
        return None

    @property
    def recipient_id(self) -> str:
        return "booking_participants" if self.booking_id else "gig_participants"
