"""
BrokerDesk Pydantic Models

Data models for claims, approval workflows, notifications and audit records.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ValidationError
from .states import (
    AuditSeverity,
    ClaimStatus,
    NotificationChannel,
    NotificationPriority,
    StepAction,
    StepStatus,
)


def _new_id() -> str:
    return str(uuid4())


class ClaimTransition(BaseModel):
    """An allowed edge in the claim status table."""
    model_config = ConfigDict(frozen=True)

    from_status: ClaimStatus
    to_status: ClaimStatus
    label: str
    description: str
    requires_notes: bool = False


class ClaimCreate(BaseModel):
    """Request model for registering a new claim."""
    client_name: str = Field(..., min_length=1, description="Name of the insured client")
    client_email: Optional[str] = Field(default=None, description="Where claim notifications are sent")
    policy_number: str = Field(..., min_length=1, description="Policy the loss is reported under")
    claim_type: str = Field(..., min_length=1, description="Type of loss, e.g. motor or fire")
    incident_date: Optional[date] = Field(default=None, description="Date of the loss event")
    description: Optional[str] = Field(default=None, description="Narrative of the loss")
    estimated_loss: float = Field(..., gt=0, description="Estimated loss amount in naira")


class Claim(BaseModel):
    """
    Insurance Claim Model

    A reported loss moving through the claim status table.
    """
    id: str = Field(default_factory=_new_id, description="Unique claim identifier")
    claim_number: str = Field(..., description="Human-readable claim number")
    organization_id: Optional[str] = Field(default=None, description="Owning brokerage")
    client_name: str
    client_email: Optional[str] = None
    policy_number: str
    claim_type: str
    incident_date: Optional[date] = None
    reported_date: date = Field(default_factory=date.today)
    description: Optional[str] = None
    estimated_loss: float = Field(..., gt=0)
    settlement_amount: Optional[float] = Field(default=None, ge=0)
    status: ClaimStatus = Field(default=ClaimStatus.REGISTERED)
    assigned_adjuster: Optional[str] = None
    notes: Optional[str] = None
    investigation_complete: bool = False
    documents_complete: bool = False
    underwriter_approved: bool = False
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None


class ApprovalLimit(BaseModel):
    """Ceiling up to which a role may approve within one workflow domain."""
    model_config = ConfigDict(frozen=True)

    role_id: str
    max_amount: float
    auto_approve: bool


class WorkflowStep(BaseModel):
    """
    One approval stage within a workflow.

    Starts PENDING and is decided exactly once; a decided step is terminal.
    """
    id: str = Field(default_factory=_new_id)
    step_number: int = Field(default=1, ge=1)
    name: str
    role_required: str
    approval_limit: Optional[float] = None
    status: StepStatus = StepStatus.PENDING
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    comments: Optional[str] = None

    def decide(self, action: StepAction, actor: str, comments: Optional[str] = None) -> None:
        """Approve or reject the step."""
        if self.status != StepStatus.PENDING:
            raise ValidationError(
                f"Workflow step '{self.name}' is already {self.status.value}",
                details={"step_id": self.id, "status": self.status.value}
            )
        self.status = StepStatus.APPROVED if action == StepAction.APPROVE else StepStatus.REJECTED
        self.approved_by = actor
        self.approved_at = datetime.now()
        self.comments = comments


class Workflow(BaseModel):
    """A persisted approval pipeline attached to a claim, remittance or other record."""
    id: str = Field(default_factory=_new_id)
    organization_id: Optional[str] = None
    workflow_type: str
    reference_type: str
    reference_id: str
    amount: float = Field(..., ge=0)
    status: StepStatus = StepStatus.PENDING
    current_step: int = 1
    total_steps: int = 0
    steps: List[WorkflowStep] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    def get_step(self, step_id: str) -> Optional[WorkflowStep]:
        return next((s for s in self.steps if s.id == step_id), None)

    @property
    def current(self) -> Optional[WorkflowStep]:
        """The step awaiting a decision, if the workflow is still open."""
        if self.status != StepStatus.PENDING:
            return None
        return next((s for s in self.steps if s.step_number == self.current_step), None)


class ClaimReadiness(BaseModel):
    """Facts checked before a claim may proceed to settlement."""
    investigation_complete: bool = False
    documents_complete: bool = False
    settlement_amount: float = Field(default=0, ge=0)
    underwriter_approval: bool = False

    @classmethod
    def from_claim(cls, claim: Claim) -> "ClaimReadiness":
        return cls(
            investigation_complete=claim.investigation_complete,
            documents_complete=claim.documents_complete,
            settlement_amount=claim.settlement_amount or 0,
            underwriter_approval=claim.underwriter_approved
        )


class ClaimsWorkflowCheck(BaseModel):
    can_proceed: bool
    required_steps: List[str] = Field(default_factory=list)


class NotificationTemplate(BaseModel):
    """A rendered notification. Never persisted, delivery is someone else's job."""
    type: NotificationChannel = NotificationChannel.EMAIL
    subject: str
    template: str
    recipients: List[str] = Field(default_factory=list)
    priority: NotificationPriority = NotificationPriority.MEDIUM


class NotificationRecord(BaseModel):
    """Row written by the delivery collaborator for each recipient."""
    id: str = Field(default_factory=_new_id)
    notification_type: NotificationChannel
    recipient: str
    subject: str
    message: str
    priority: NotificationPriority
    status: str = "sent"
    sent_at: datetime = Field(default_factory=datetime.now)


class AuditRecord(BaseModel):
    """Append-only audit trail entry."""
    id: str = Field(default_factory=_new_id)
    resource_type: str
    resource_id: str
    action: str
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    severity: AuditSeverity = AuditSeverity.INFO
    actor: str
    organization_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)
