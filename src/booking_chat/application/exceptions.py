from __future__ import annotations


class ChatError(Exception):
    """Base chat client error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotConnectedError(ChatError):
    def __init__(self, detail: str = "Not connected to chat server") -> None:
        super().__init__(detail)


class SendRejectedError(ChatError):
    """The server acknowledged the emission with ``success: false``."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class UploadFailedError(ChatError):
    pass


class HistoryLoadFailedError(ChatError):
    pass
