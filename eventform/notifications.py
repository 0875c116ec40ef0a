"""
User-facing error channel.

Upload, delete and fetch failures never escape the form; they are turned
into notifications. ToastNotifier keeps them in memory (the CLI prints
them) and mirrors each one to the log.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol

from eventform.api_client import ApiError

logger = logging.getLogger("eventform.notifications")


class Notifier(Protocol):
    """Sink accepting a readable message and an optional status code."""

    def error(self, message: str, status_code: Optional[int] = None) -> None:
        ...


@dataclass(frozen=True)
class Toast:
    level: str
    message: str
    status_code: Optional[int] = None
    created_at: Optional[datetime] = None


def error_message(error: BaseException) -> str:
    """
    Turn an exception into a message fit for the user.

    ApiError messages already carry the server detail; anything else is
    unexpected and gets a generic prefix.
    """
    if isinstance(error, ApiError):
        text = str(error) or "Request failed"
        if error.status_code is not None and str(error.status_code) not in text:
            return f"{text} (status {error.status_code})"
        return text
    return f"Unexpected error: {error}" if str(error) else "Unexpected error"


class ToastNotifier:
    """In-memory notification list."""

    def __init__(self) -> None:
        self._toasts: list[Toast] = []

    @property
    def toasts(self) -> list[Toast]:
        return list(self._toasts)

    @property
    def errors(self) -> list[Toast]:
        return [t for t in self._toasts if t.level == "error"]

    def error(self, message: str, status_code: Optional[int] = None) -> None:
        logger.error(f"{message} [status={status_code}]" if status_code else message)
        self._toasts.append(
            Toast("error", message, status_code, datetime.now(timezone.utc))
        )

    def info(self, message: str) -> None:
        logger.info(message)
        self._toasts.append(Toast("info", message, None, datetime.now(timezone.utc)))

    def clear(self) -> None:
        self._toasts.clear()
