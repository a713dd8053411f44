"""
Status Definitions

Enumerations for claim statuses, approval workflows and notifications.
"""
from enum import Enum


class ClaimStatus(str, Enum):
    """
    Lifecycle of an insurance claim.

    Standard Flow: REGISTERED -> INVESTIGATING -> ASSESSED -> APPROVED -> SETTLED -> CLOSED
    Any pre-approval status may move to REJECTED.
    """
    REGISTERED = "registered"
    INVESTIGATING = "investigating"
    ASSESSED = "assessed"
    APPROVED = "approved"
    SETTLED = "settled"
    REJECTED = "rejected"  # Terminal
    CLOSED = "closed"  # Terminal


class WorkflowType(str, Enum):
    """Approval domains with their own limit tables."""
    UNDERWRITING = "underwriting"
    CLAIMS = "claims"
    PAYMENTS = "payments"
    REMITTANCE = "remittance"


class StepStatus(str, Enum):
    """Status of a workflow step (and of the workflow as a whole)."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class StepAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class NotificationChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class AuditSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"
