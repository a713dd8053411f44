"""
Audit Logger

Append-only audit trail. Writes are fire-and-forget: a failed write is
logged and never surfaces to the operation it accompanies.
"""
import logging
from typing import Any, Dict, List, Optional

from brokerdesk.core.exceptions import AuditLoggingError
from brokerdesk.core.models import AuditRecord
from brokerdesk.core.states import AuditSeverity
from brokerdesk.services.store import AUDIT_LOGS, RecordStore

logger = logging.getLogger(__name__)


class AuditLogger:
    """Writes AuditRecords into the audit_logs table of a RecordStore."""

    def __init__(self, store: RecordStore):
        self.store = store

    def record(
        self,
        resource_type: str,
        resource_id: str,
        action: str,
        actor: str,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        severity: AuditSeverity = AuditSeverity.INFO,
        organization_id: Optional[str] = None
    ) -> Optional[AuditRecord]:
        """
        Append an audit record.

        Returns:
            The stored record, or None if the write failed
        """
        entry = AuditRecord(
            resource_type=resource_type,
            resource_id=resource_id,
            action=action,
            actor=actor,
            old_values=old_values,
            new_values=new_values,
            severity=severity,
            organization_id=organization_id
        )
        try:
            return self.store.insert(AUDIT_LOGS, entry)
        except Exception as e:
            error = AuditLoggingError(
                f"Failed to log {action} for {resource_type} {resource_id}",
                details={"cause": str(e)}
            )
            logger.error(f"{error} ({e})")
            return None

    def trail(self, resource_type: str, resource_id: str) -> List[AuditRecord]:
        """Audit records for one resource, newest first."""
        records = self.store.query(
            AUDIT_LOGS,
            lambda r: r.resource_type == resource_type and r.resource_id == resource_id
        )
        return sorted(records, key=lambda r: r.timestamp, reverse=True)
