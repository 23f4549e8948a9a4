"""
Notification dispatcher interface.
The core hands events over; delivery (mail, push, ...) happens elsewhere.
"""

from abc import ABC, abstractmethod

from coworking.core.logging import get_logger

logger = get_logger(__name__)


class Notifier(ABC):
    """
    Interface for notification dispatch.

    Implementations:
    - LoggingNotifier: writes the event to the log (development)
    - RedisNotifier: pushes the event onto a Redis queue for a delivery worker
    """

    @abstractmethod
    async def send(self, recipient_id: int, event_type: str, payload: dict) -> None:
        """
        Hand one notification to the dispatcher.

        Args:
            recipient_id: User to notify
            event_type: e.g. "reservation.created.visitor"
            payload: JSON-serializable event data
        """
        pass


class LoggingNotifier(Notifier):
    """Log-only dispatcher. Nothing is delivered."""

    async def send(self, recipient_id: int, event_type: str, payload: dict) -> None:
        logger.info("notification_logged", recipient_id=recipient_id, event_type=event_type, payload=payload)
