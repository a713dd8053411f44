"""
FastAPI Endpoints for Claim Processing

REST API for registering claims and moving them through the status table.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from brokerdesk.core.exceptions import (
    BrokerDeskError,
    ClaimNotFoundError,
    PersistenceError,
    ValidationError,
    WorkflowNotFoundError,
)
from brokerdesk.core.models import (
    AuditRecord,
    Claim,
    ClaimCreate,
    ClaimsWorkflowCheck,
    ClaimTransition,
)
from brokerdesk.core.states import ClaimStatus
from brokerdesk.services.claims import ActionableInsights, ClaimWorkflowService
from brokerdesk.state_machine.machine import ClaimStateMachine
from brokerdesk.api.dependencies import get_claim_service, get_state_machine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/claims", tags=["claims"])


def http_error(error: BrokerDeskError, failed_action: str) -> HTTPException:
    """
    Map a service error onto an HTTP error.

    Persistence failures only name the attempted action; internal detail
    stays in the log.
    """
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
    if isinstance(error, (ClaimNotFoundError, WorkflowNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    logger.error(f"{failed_action}: {error}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failed_action)


class ClaimResponse(BaseModel):
    """Response model for claim operations."""
    claim: Claim
    message: str
    available_transitions: List[ClaimTransition]


class TransitionRequest(BaseModel):
    new_status: ClaimStatus
    notes: Optional[str] = None
    actor: Optional[str] = None


class AssignRequest(BaseModel):
    adjuster_id: str = Field(..., min_length=1)
    actor: Optional[str] = None


class BulkStatusRequest(BaseModel):
    claim_ids: List[str] = Field(..., min_length=1)
    new_status: ClaimStatus
    notes: Optional[str] = None
    actor: Optional[str] = None


class BulkStatusResponse(BaseModel):
    updated: List[Claim]
    failed: List[str]


class DeleteResponse(BaseModel):
    claim_id: str
    deleted: bool
    message: str


def _respond(claim: Claim, message: str, machine: ClaimStateMachine) -> ClaimResponse:
    return ClaimResponse(
        claim=claim,
        message=message,
        available_transitions=machine.get_available_transitions(claim.status)
    )


@router.post("/", response_model=ClaimResponse, status_code=status.HTTP_201_CREATED)
async def create_claim(
    claim_data: ClaimCreate,
    actor: Optional[str] = None,
    service: ClaimWorkflowService = Depends(get_claim_service),
    machine: ClaimStateMachine = Depends(get_state_machine)
) -> ClaimResponse:
    """
    Register a new claim.

    The claim starts in REGISTERED status.
    """
    try:
        claim = service.create_claim(claim_data, actor=actor)
    except BrokerDeskError as e:
        raise http_error(e, "Failed to register claim")

    return _respond(claim, f"Claim {claim.claim_number} registered", machine)


@router.get("/", response_model=List[Claim])
async def list_claims(
    claim_status: Optional[ClaimStatus] = None,
    adjuster_id: Optional[str] = None,
    service: ClaimWorkflowService = Depends(get_claim_service)
) -> List[Claim]:
    """List claims, newest first, optionally by status or assigned adjuster."""
    claims = service.get_by_status(claim_status) if claim_status else service.list_claims()
    if adjuster_id:
        claims = [c for c in claims if c.assigned_adjuster == adjuster_id]
    return claims


@router.get("/dashboard/insights", response_model=ActionableInsights)
async def get_insights(
    service: ClaimWorkflowService = Depends(get_claim_service)
) -> ActionableInsights:
    """Idle claims, SLA breaches and claims awaiting approval."""
    return service.get_actionable_insights()


@router.post("/bulk-status", response_model=BulkStatusResponse)
async def bulk_update_status(
    request: BulkStatusRequest,
    service: ClaimWorkflowService = Depends(get_claim_service)
) -> BulkStatusResponse:
    """Transition several claims at once; claims that cannot move are reported back."""
    updated = service.bulk_update_status(
        request.claim_ids, request.new_status, notes=request.notes, actor=request.actor
    )
    updated_ids = {c.id for c in updated}
    return BulkStatusResponse(
        updated=updated,
        failed=[cid for cid in request.claim_ids if cid not in updated_ids]
    )


@router.get("/{claim_id}", response_model=ClaimResponse)
async def get_claim(
    claim_id: str,
    service: ClaimWorkflowService = Depends(get_claim_service),
    machine: ClaimStateMachine = Depends(get_state_machine)
) -> ClaimResponse:
    try:
        claim = service.get_claim(claim_id)
    except BrokerDeskError as e:
        raise http_error(e, "Failed to load claim")

    return _respond(claim, f"Claim {claim_id} retrieved", machine)


@router.delete("/{claim_id}", response_model=DeleteResponse)
async def delete_claim(
    claim_id: str,
    actor: Optional[str] = None,
    service: ClaimWorkflowService = Depends(get_claim_service)
) -> DeleteResponse:
    try:
        deleted = service.delete_claim(claim_id, actor=actor)
    except BrokerDeskError as e:
        raise http_error(e, "Failed to delete claim")

    return DeleteResponse(claim_id=claim_id, deleted=deleted, message="Claim has been deleted successfully")


@router.get("/{claim_id}/transitions", response_model=List[ClaimTransition])
async def get_transitions(
    claim_id: str,
    service: ClaimWorkflowService = Depends(get_claim_service),
    machine: ClaimStateMachine = Depends(get_state_machine)
) -> List[ClaimTransition]:
    """Status changes currently available for a claim."""
    try:
        claim = service.get_claim(claim_id)
    except BrokerDeskError as e:
        raise http_error(e, "Failed to load claim")

    return machine.get_available_transitions(claim.status)


@router.post("/{claim_id}/transition", response_model=ClaimResponse)
async def transition_claim(
    claim_id: str,
    request: TransitionRequest,
    service: ClaimWorkflowService = Depends(get_claim_service),
    machine: ClaimStateMachine = Depends(get_state_machine)
) -> ClaimResponse:
    """
    Move a claim to a new status.

    Rejections require notes. Only edges in the status table are accepted.
    """
    try:
        claim = service.transition_claim(
            claim_id, request.new_status, notes=request.notes, actor=request.actor
        )
    except BrokerDeskError as e:
        raise http_error(e, "Failed to update claim status")

    return _respond(claim, f"Claim status updated to {claim.status.value}", machine)


@router.post("/{claim_id}/assign", response_model=ClaimResponse)
async def assign_adjuster(
    claim_id: str,
    request: AssignRequest,
    service: ClaimWorkflowService = Depends(get_claim_service),
    machine: ClaimStateMachine = Depends(get_state_machine)
) -> ClaimResponse:
    try:
        claim = service.assign_adjuster(claim_id, request.adjuster_id, actor=request.actor)
    except BrokerDeskError as e:
        raise http_error(e, "Failed to assign adjuster")

    return _respond(claim, "Claim has been assigned to an adjuster", machine)


@router.get("/{claim_id}/audit", response_model=List[AuditRecord])
async def get_audit_trail(
    claim_id: str,
    service: ClaimWorkflowService = Depends(get_claim_service)
) -> List[AuditRecord]:
    """Audit trail for a claim, newest first. Deleted claims keep their trail."""
    try:
        return service.get_audit_trail(claim_id)
    except PersistenceError as e:
        raise http_error(e, "Failed to load audit trail")


@router.get("/{claim_id}/readiness", response_model=ClaimsWorkflowCheck)
async def get_readiness(
    claim_id: str,
    service: ClaimWorkflowService = Depends(get_claim_service)
) -> ClaimsWorkflowCheck:
    """Whether the claim may proceed to settlement, and what is missing."""
    try:
        return service.check_readiness(claim_id)
    except BrokerDeskError as e:
        raise http_error(e, "Failed to check claim readiness")
