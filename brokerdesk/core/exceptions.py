"""
BrokerDesk Exception Hierarchy

All errors carry a machine-readable code (BD_*) for logging and API responses.
"""
from typing import Any, Dict, Optional


class BrokerDeskError(Exception):
    """
    Base exception for all BrokerDesk errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code
        details: Additional context about the error
    """
    code: str = "BD_INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if code:
            self.code = code

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging/API responses."""
        result: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(BrokerDeskError):
    """Illegal transition, missing notes, or malformed amount/role. Nothing was mutated."""
    code = "BD_VALIDATION_ERROR"


class PersistenceError(BrokerDeskError):
    """The data layer call failed; state is whatever was last committed."""
    code = "BD_PERSISTENCE_ERROR"


class ClaimNotFoundError(PersistenceError):
    code = "BD_CLAIM_NOT_FOUND"


class WorkflowNotFoundError(PersistenceError):
    code = "BD_WORKFLOW_NOT_FOUND"


class AuditLoggingError(BrokerDeskError):
    """Audit write failed. Logged only, never raised to callers."""
    code = "BD_AUDIT_LOGGING_ERROR"


class NotificationDispatchError(BrokerDeskError):
    """Delivery collaborator failed. Logged only, never raised to callers."""
    code = "BD_NOTIFICATION_DISPATCH_ERROR"
