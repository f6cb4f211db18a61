"""
Transient notifications ("toasts").

Flows push notifications here; the web layer flashes them through the
session and the CLI prints them.
"""
from typing import Callable, List, Optional

import structlog

from .enums import NotificationLevel
from .types import Notification

logger = structlog.get_logger()


class Notifier:
    """Queue of notifications waiting to be shown once"""

    def __init__(self, on_push: Optional[Callable[[Notification], None]] = None):
        self._queue: List[Notification] = []
        self._on_push = on_push

    def push(
        self,
        level: NotificationLevel,
        title: str,
        description: Optional[str] = None,
    ) -> Notification:
        notification = Notification(level=level, title=title, description=description)
        self._queue.append(notification)
        logger.debug("Notification queued", level=level.value, title=title)
        if self._on_push:
            self._on_push(notification)
        return notification

    def success(self, title: str, description: Optional[str] = None) -> Notification:
        return self.push(NotificationLevel.SUCCESS, title, description)

    def error(self, title: str, description: Optional[str] = None) -> Notification:
        return self.push(NotificationLevel.ERROR, title, description)

    def info(self, title: str, description: Optional[str] = None) -> Notification:
        return self.push(NotificationLevel.INFO, title, description)

    @property
    def pending(self) -> List[Notification]:
        return list(self._queue)

    def drain(self) -> List[Notification]:
        """Return all queued notifications and clear the queue."""
        items, self._queue = self._queue, []
        return items

    def __len__(self) -> int:
        return len(self._queue)
