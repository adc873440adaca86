from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from booking_chat.config import Settings, settings as default_settings
from booking_chat.domain.entities.session import SessionIdentity
from booking_chat.infrastructure.http.chat_api import HttpxChatApi
from booking_chat.infrastructure.transport.socketio_transport import SocketIOTransportFactory
from booking_chat.services.session_manager import ChatSessionManager, open_session

logger = logging.getLogger(__name__)


@asynccontextmanager
async def chat_session(
    identity: SessionIdentity,
    settings: Settings | None = None,
) -> AsyncIterator[ChatSessionManager]:
    """Wire the Socket.IO transport and REST client into an open session."""
    cfg = settings or default_settings
    async with httpx.AsyncClient(
        base_url=cfg.API_BASE_URL,
        timeout=cfg.HTTP_TIMEOUT_SECONDS,
    ) as http:
        api = HttpxChatApi(http, history_path=cfg.HISTORY_PATH, upload_path=cfg.UPLOAD_PATH)
        logger.info("HTTP client ready for %s", cfg.API_BASE_URL)
        async with open_session(
            identity,
            SocketIOTransportFactory(cfg.CHAT_SERVER_URL),
            api,
            namespace=cfg.CHAT_NAMESPACE,
            transports=cfg.CHAT_TRANSPORTS,
            typing_timeout=cfg.TYPING_TIMEOUT_SECONDS,
            history_page_size=cfg.HISTORY_PAGE_SIZE,
        ) as session:
            yield session
