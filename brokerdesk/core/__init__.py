# Core module - statuses, models and errors
from .states import (
    AuditSeverity,
    ClaimStatus,
    NotificationChannel,
    NotificationPriority,
    StepAction,
    StepStatus,
    WorkflowType,
)
from .models import (
    ApprovalLimit,
    AuditRecord,
    Claim,
    ClaimCreate,
    ClaimReadiness,
    ClaimsWorkflowCheck,
    ClaimTransition,
    NotificationRecord,
    NotificationTemplate,
    Workflow,
    WorkflowStep,
)
from .exceptions import (
    AuditLoggingError,
    BrokerDeskError,
    ClaimNotFoundError,
    NotificationDispatchError,
    PersistenceError,
    ValidationError,
    WorkflowNotFoundError,
)

__all__ = [
    "AuditSeverity",
    "ClaimStatus",
    "NotificationChannel",
    "NotificationPriority",
    "StepAction",
    "StepStatus",
    "WorkflowType",
    "ApprovalLimit",
    "AuditRecord",
    "Claim",
    "ClaimCreate",
    "ClaimReadiness",
    "ClaimsWorkflowCheck",
    "ClaimTransition",
    "NotificationRecord",
    "NotificationTemplate",
    "Workflow",
    "WorkflowStep",
    "AuditLoggingError",
    "BrokerDeskError",
    "ClaimNotFoundError",
    "NotificationDispatchError",
    "PersistenceError",
    "ValidationError",
    "WorkflowNotFoundError",
]
