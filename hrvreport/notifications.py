"""
notifications.py - User-facing notification sinks

The core never blocks on a notification and never lets a failing sink
propagate into report state changes.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


class Severity(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class Notifier(ABC):
    """Fire-and-forget toast sink supplied by the host application"""

    @abstractmethod
    def notify(
        self,
        message: str,
        severity: Severity = Severity.INFO,
        duration_ms: Optional[int] = None,
    ) -> None:
        pass


class LoggingNotifier(Notifier):
    """Routes notifications to the standard logging system"""

    def __init__(self, name: str = "hrvreport.notifications"):
        self._logger = logging.getLogger(name)

    def notify(
        self,
        message: str,
        severity: Severity = Severity.INFO,
        duration_ms: Optional[int] = None,
    ) -> None:
        self._logger.log(_LOG_LEVELS[severity], "[%s] %s", severity.value, message)


class CollectingNotifier(Notifier):
    """Keeps notifications in memory, newest last"""

    def __init__(self):
        self.messages: List[Tuple[str, Severity, Optional[int]]] = []

    def notify(
        self,
        message: str,
        severity: Severity = Severity.INFO,
        duration_ms: Optional[int] = None,
    ) -> None:
        self.messages.append((message, severity, duration_ms))

    def by_severity(self, severity: Severity) -> List[str]:
        return [m for m, s, _ in self.messages if s == severity]

    def clear(self) -> None:
        self.messages.clear()


def safe_notify(
    notifier: Notifier,
    message: str,
    severity: Severity = Severity.INFO,
    duration_ms: Optional[int] = None,
) -> None:
    """Deliver a notification, logging instead of raising if the sink fails"""
    try:
        notifier.notify(message, severity, duration_ms)
    except Exception as e:
        logger.error("Notification sink failed for %r: %s", message, e)
