"""
Notification Dispatcher

Delivery collaborator for rendered notifications. The logging dispatcher
records one row per recipient instead of talking to an email/SMS provider.
"""
import logging
from abc import ABC, abstractmethod
from typing import List

from brokerdesk.core.exceptions import NotificationDispatchError
from brokerdesk.core.models import NotificationRecord, NotificationTemplate
from brokerdesk.services.store import NOTIFICATIONS, RecordStore

logger = logging.getLogger(__name__)


class NotificationDispatcher(ABC):

    @abstractmethod
    def send(self, notification: NotificationTemplate) -> List[NotificationRecord]:
        """Deliver a rendered notification to its recipients."""

    def dispatch(self, notification: NotificationTemplate) -> List[NotificationRecord]:
        """Fire-and-forget delivery: failures are logged, never raised."""
        if not notification.recipients:
            logger.info(f"Notification '{notification.subject}' has no recipients - skipped")
            return []
        try:
            return self.send(notification)
        except Exception as e:
            error = NotificationDispatchError(
                f"Failed to dispatch '{notification.subject}'",
                details={"cause": str(e), "recipients": notification.recipients}
            )
            logger.error(f"{error} ({e})")
            return []


class LoggingDispatcher(NotificationDispatcher):
    """Stores a NotificationRecord per recipient and logs it."""

    def __init__(self, store: RecordStore):
        self.store = store

    def send(self, notification: NotificationTemplate) -> List[NotificationRecord]:
        records = []
        for recipient in notification.recipients:
            record = NotificationRecord(
                notification_type=notification.type,
                recipient=recipient,
                subject=notification.subject,
                message=notification.template,
                priority=notification.priority
            )
            records.append(self.store.insert(NOTIFICATIONS, record))
            logger.info(
                f"{notification.type.value} notification sent: '{notification.subject}' to {recipient}"
            )
        return records

    def sent(self) -> List[NotificationRecord]:
        return sorted(self.store.query(NOTIFICATIONS), key=lambda r: r.sent_at)
