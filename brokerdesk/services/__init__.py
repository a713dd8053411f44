# Services module - collaborators (store, audit, delivery)
from .store import AUDIT_LOGS, CLAIMS, NOTIFICATIONS, WORKFLOWS, InMemoryStore, RecordStore
from .audit import AuditLogger
from .notifier import LoggingDispatcher, NotificationDispatcher

__all__ = [
    "AUDIT_LOGS",
    "CLAIMS",
    "NOTIFICATIONS",
    "WORKFLOWS",
    "InMemoryStore",
    "RecordStore",
    "AuditLogger",
    "LoggingDispatcher",
    "NotificationDispatcher",
]
