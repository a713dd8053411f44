"""
FastAPI Endpoints for Approval Workflows and Notifications
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from brokerdesk.core.exceptions import BrokerDeskError
from brokerdesk.core.models import NotificationTemplate, Workflow, WorkflowStep
from brokerdesk.core.states import StepAction, StepStatus
from brokerdesk.services.workflows import WorkflowService
from brokerdesk.workflow.approvals import ApprovalEngine
from brokerdesk.workflow.notifications import generate_notification
from brokerdesk.api.dependencies import get_approval_engine, get_workflow_service
from brokerdesk.api.endpoints import http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflows", tags=["workflows"])
notifications_router = APIRouter(prefix="/notifications", tags=["notifications"])


class ApprovalCheckRequest(BaseModel):
    workflow_type: str
    amount: float
    role: str


class ApprovalCheckResponse(BaseModel):
    requires_approval: bool
    next_approver: Optional[str] = None
    steps: List[WorkflowStep]


class StartWorkflowRequest(BaseModel):
    workflow_type: str
    reference_type: str
    reference_id: str
    amount: float = Field(..., ge=0)
    initiator_role: str
    actor: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class StepDecisionRequest(BaseModel):
    action: StepAction
    actor: str = Field(..., min_length=1)
    comments: Optional[str] = None


class NotificationPreviewRequest(BaseModel):
    event: str
    data: Dict[str, Any] = Field(default_factory=dict)


@router.post("/approval-check", response_model=ApprovalCheckResponse)
async def approval_check(
    request: ApprovalCheckRequest,
    engine: ApprovalEngine = Depends(get_approval_engine)
) -> ApprovalCheckResponse:
    """Dry run: would this transaction need approval, and by whom."""
    try:
        needed = engine.requires_approval(request.workflow_type, request.amount, request.role)
        return ApprovalCheckResponse(
            requires_approval=needed,
            next_approver=(
                engine.get_next_approver(request.workflow_type, request.amount, request.role)
                if needed else None
            ),
            steps=engine.create_workflow(request.workflow_type, request.amount, request.role)
        )
    except BrokerDeskError as e:
        raise http_error(e, "Failed to check approval requirements")


@router.post("/", response_model=Workflow, status_code=status.HTTP_201_CREATED)
async def start_workflow(
    request: StartWorkflowRequest,
    service: WorkflowService = Depends(get_workflow_service)
) -> Workflow:
    try:
        return service.start_workflow(
            request.workflow_type,
            request.reference_type,
            request.reference_id,
            request.amount,
            request.initiator_role,
            actor=request.actor,
            metadata=request.metadata
        )
    except BrokerDeskError as e:
        raise http_error(e, "Failed to create workflow")


@router.get("/", response_model=List[Workflow])
async def list_workflows(
    workflow_status: Optional[StepStatus] = None,
    workflow_type: Optional[str] = None,
    role: Optional[List[str]] = Query(default=None),
    service: WorkflowService = Depends(get_workflow_service)
) -> List[Workflow]:
    """List workflows; with role, only open workflows waiting on those roles."""
    if role:
        return service.get_pending_workflows(role)
    return service.get_workflows(status=workflow_status, workflow_type=workflow_type)


@router.get("/{workflow_id}", response_model=Workflow)
async def get_workflow(
    workflow_id: str,
    service: WorkflowService = Depends(get_workflow_service)
) -> Workflow:
    try:
        return service.get_workflow(workflow_id)
    except BrokerDeskError as e:
        raise http_error(e, "Failed to load workflow")


@router.post("/{workflow_id}/steps/{step_id}", response_model=Workflow)
async def decide_step(
    workflow_id: str,
    step_id: str,
    request: StepDecisionRequest,
    service: WorkflowService = Depends(get_workflow_service)
) -> Workflow:
    """Approve or reject the current step of a workflow."""
    try:
        return service.process_step(
            workflow_id, step_id, request.action, request.actor, comments=request.comments
        )
    except BrokerDeskError as e:
        raise http_error(e, "Failed to process workflow step")


@notifications_router.post("/preview", response_model=NotificationTemplate)
async def preview_notification(request: NotificationPreviewRequest) -> NotificationTemplate:
    """Render a notification without sending it."""
    return generate_notification(request.event, request.data)
