import logging
from dataclasses import dataclass
from typing import List, Literal

ToastLevel = Literal["info", "success", "warning", "error"]

logger = logging.getLogger("lookmate.client.toasts")

_LOG_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class Toast:
    level: ToastLevel
    message: str


class Notifier:
    """Collects user-facing toasts; a UI drains ``toasts``, tests inspect them."""

    def __init__(self) -> None:
        self.toasts: List[Toast] = []

    def send(self, level: ToastLevel, message: str) -> None:
        self.toasts.append(Toast(level, message))
        logger.log(_LOG_LEVELS[level], "toast: %s %s", level, message)

    def info(self, message: str) -> None:
        self.send("info", message)

    def warning(self, message: str) -> None:
        self.send("warning", message)

    def error(self, message: str) -> None:
        self.send("error", message)

    def drain(self) -> List[Toast]:
        out, self.toasts = self.toasts, []
        return out
