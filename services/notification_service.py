from __future__ import annotations
import logging
from collections import deque
from typing import Callable, Deque

logger = logging.getLogger(__name__)


class NotificationService:
    """Short-lived user-facing messages. Keeps the last few for display."""

    def __init__(self, on_notify: Callable[[str], None] | None = None, history: int = 10):
        self.on_notify = on_notify
        self.recent: Deque[str] = deque(maxlen=history)

    def notify(self, message: str) -> None:
        logger.warning(f"User notification: {message}")
        self.recent.append(message)
        if self.on_notify is not None:
            self.on_notify(message)
