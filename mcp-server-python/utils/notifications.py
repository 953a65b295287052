"""
User-facing feedback for pipeline moves.

The core only calls notify_success / notify_error / notify_info and never
looks at what happens to the message afterwards.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Protocol

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level.value, "message": self.message}


class NotificationSink(Protocol):
    def notify_success(self, message: str) -> None: ...

    def notify_error(self, message: str) -> None: ...

    def notify_info(self, message: str) -> None: ...


class LoggingNotificationSink:
    """Sink that only writes notifications to the log."""

    def notify_success(self, message: str) -> None:
        logger.info(message)

    def notify_error(self, message: str) -> None:
        logger.error(message)

    def notify_info(self, message: str) -> None:
        logger.info(message)


class CollectingNotificationSink(LoggingNotificationSink):
    """Logs and keeps notifications so a tool response can return them."""

    def __init__(self):
        self.notifications: List[Notification] = []

    def notify_success(self, message: str) -> None:
        super().notify_success(message)
        self.notifications.append(Notification(NotificationLevel.SUCCESS, message))

    def notify_error(self, message: str) -> None:
        super().notify_error(message)
        self.notifications.append(Notification(NotificationLevel.ERROR, message))

    def notify_info(self, message: str) -> None:
        super().notify_info(message)
        self.notifications.append(Notification(NotificationLevel.INFO, message))

    def to_list(self) -> List[Dict[str, str]]:
        return [n.to_dict() for n in self.notifications]
