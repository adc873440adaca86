from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    CHAT_SERVER_URL: str = "http://localhost:3000"
    CHAT_NAMESPACE: str = "/chat"
    CHAT_TRANSPORTS: list[str] = ["websocket", "polling"]

    API_BASE_URL: str = "http://localhost:3000"
    HISTORY_PATH: str = "/api/chat/history"
    UPLOAD_PATH: str = "/api/chat/upload"
    HISTORY_PAGE_SIZE: int = 50
    HTTP_TIMEOUT_SECONDS: float = 10.0

    TYPING_TIMEOUT_SECONDS: float = 3.0

    LOG_LEVEL: str = "INFO"

    CHAT_USER_ID: str | None = None
    CHAT_BOOKING_ID: str | None = None
    CHAT_GIG_ID: str | None = None

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
