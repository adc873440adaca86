"""Entrypoint: python -m booking_chat"""
from __future__ import annotations

import asyncio
import logging
import sys

from booking_chat.app import chat_session
from booking_chat.application.dto.upload import FileUpload
from booking_chat.application.exceptions import ChatError
from booking_chat.config import settings
from booking_chat.domain.entities.session import SessionIdentity
from booking_chat.services.session_manager import ChatSessionManager

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.5


async def _print_incoming(session: ChatSessionManager) -> None:
    seen: set[str] = set()
    typing: tuple[str, ...] = ()
    while True:
        for msg in session.messages:
            if msg.id not in seen:
                seen.add(msg.id)
                suffix = f" [{msg.file_url}]" if msg.file_url else ""
                print(f"{msg.timestamp:%H:%M} {msg.sender_id}: {msg.content}{suffix}")
        if session.typing != typing:
            typing = session.typing
            if typing:
                print(f"... {', '.join(typing)} typing")
        await asyncio.sleep(POLL_INTERVAL)


async def _handle_line(session: ChatSessionManager, line: str) -> None:
    if line.startswith("/file "):
        await session.send_file(FileUpload.from_path(line.removeprefix("/file ").strip()))
    elif line.startswith("/read "):
        session.mark_as_read(line.removeprefix("/read ").strip())
    else:
        session.start_typing()
        await session.send_message(line)


async def run_console(identity: SessionIdentity) -> None:
    loop = asyncio.get_running_loop()
    async with chat_session(identity) as session:
        printer = asyncio.create_task(_print_incoming(session), name="chat-printer")
        try:
            while True:
                line = await loop.run_in_executor(None, sys.stdin.readline)
                if not line:
                    break
                line = line.strip()
                if not line:
                    continue
                if line == "/quit":
                    break
                try:
                    await _handle_line(session, line)
                except (ChatError, OSError) as exc:
                    print(f"! {exc}")
                if session.error:
                    print(f"! {session.error}")
        finally:
            printer.cancel()


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.CHAT_USER_ID:
        sys.exit("CHAT_USER_ID is not set")
    identity = SessionIdentity(
        user_id=settings.CHAT_USER_ID,
        booking_id=settings.CHAT_BOOKING_ID,
        gig_id=settings.CHAT_GIG_ID,
    )
    asyncio.run(run_console(identity))


if __name__ == "__main__":
    main()
