"""
Claim Workflow Service

Applies claim status transitions, adjuster assignment and deletion through
the record store, with an audit record after every mutation.

Each operation is two sequential steps: the primary write, whose failure is
raised to the caller, then the audit write, whose failure is only logged.
"""
import logging
import time
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from brokerdesk.config import Settings, get_settings
from brokerdesk.core.exceptions import BrokerDeskError, ClaimNotFoundError
from brokerdesk.core.models import (
    AuditRecord,
    Claim,
    ClaimCreate,
    ClaimReadiness,
    ClaimsWorkflowCheck,
)
from brokerdesk.core.states import AuditSeverity, ClaimStatus
from brokerdesk.monitors.status_monitor import StatusMonitor
from brokerdesk.services.audit import AuditLogger
from brokerdesk.services.notifier import NotificationDispatcher
from brokerdesk.services.store import CLAIMS, RecordStore
from brokerdesk.state_machine.machine import ClaimStateMachine, StatusLike
from brokerdesk.workflow.approvals import ApprovalEngine, approval_engine
from brokerdesk.workflow.notifications import generate_notification

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "claim"

# Statuses that no longer count as open work
CLOSED_OUT = {ClaimStatus.SETTLED, ClaimStatus.CLOSED, ClaimStatus.REJECTED}


class ActionableInsights(BaseModel):
    """Claims needing attention."""
    idle_claims: List[Claim] = Field(default_factory=list)
    sla_breaches: List[Claim] = Field(default_factory=list)
    pending_approval: List[Claim] = Field(default_factory=list)


class ClaimWorkflowService:
    """Claim operations over a RecordStore."""

    def __init__(
        self,
        store: RecordStore,
        audit: Optional[AuditLogger] = None,
        state_machine: Optional[ClaimStateMachine] = None,
        monitor: Optional[StatusMonitor] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        engine: Optional[ApprovalEngine] = None,
        settings: Optional[Settings] = None
    ):
        self.store = store
        self.audit = audit or AuditLogger(store)
        self.state_machine = state_machine or ClaimStateMachine()
        self.dispatcher = dispatcher
        self.monitor = monitor or (StatusMonitor(dispatcher) if dispatcher else None)
        self.engine = engine or approval_engine
        self.settings = settings or get_settings()

    def _actor(self, actor: Optional[str]) -> str:
        return actor or self.settings.default_actor

    def _generate_claim_number(self) -> str:
        prefix = self.settings.organization_name[:3].upper() or "ORG"
        suffix = str(int(time.time() * 1000))[-4:]
        return f"{prefix}C{suffix}"

    def _audit(
        self,
        claim: Claim,
        action: str,
        actor: str,
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
        severity: AuditSeverity = AuditSeverity.INFO
    ) -> Optional[AuditRecord]:
        return self.audit.record(
            resource_type=RESOURCE_TYPE,
            resource_id=claim.id,
            action=action,
            actor=actor,
            old_values=old_values,
            new_values=new_values,
            severity=severity,
            organization_id=claim.organization_id
        )

    def create_claim(self, claim_data: ClaimCreate, actor: Optional[str] = None) -> Claim:
        """Register a new claim in REGISTERED status."""
        actor = self._actor(actor)
        claim = Claim(
            **claim_data.model_dump(),
            claim_number=self._generate_claim_number(),
            organization_id=self.settings.organization_id,
            created_by=actor,
            status=ClaimStatus.REGISTERED
        )
        claim = self.store.insert(CLAIMS, claim)

        logger.info(f"Registered claim {claim.claim_number} ({claim.id}) for {claim.client_name}")

        self._audit(claim, "CLAIM_REGISTERED", actor, new_values={
            "stage": claim.status.value,
            "claim_number": claim.claim_number,
            "claim_type": claim.claim_type,
            "estimated_loss": claim.estimated_loss,
        })

        if self.dispatcher:
            self.dispatcher.dispatch(generate_notification("claim_registered", {
                "client_name": claim.client_name,
                "client_email": claim.client_email,
                "claim_number": claim.claim_number,
                "policy_number": claim.policy_number,
            }))

        return claim

    def get_claim(self, claim_id: str) -> Claim:
        claim = self.store.get(CLAIMS, claim_id)
        if claim is None:
            raise ClaimNotFoundError(f"Claim {claim_id} not found", details={"claim_id": claim_id})
        return claim

    def list_claims(self) -> List[Claim]:
        """All claims, newest first."""
        return sorted(self.store.query(CLAIMS), key=lambda c: c.created_at, reverse=True)

    def get_by_status(self, status: ClaimStatus) -> List[Claim]:
        return [c for c in self.list_claims() if c.status == status]

    def get_assigned_to(self, adjuster_id: str) -> List[Claim]:
        return [c for c in self.list_claims() if c.assigned_adjuster == adjuster_id]

    def transition_claim(
        self,
        claim_id: str,
        new_status: StatusLike,
        notes: Optional[str] = None,
        actor: Optional[str] = None
    ) -> Claim:
        """
        Move a claim to new_status.

        Raises:
            ValidationError: Edge not in the status table, or notes missing
                where the edge requires them. Nothing is written.
            PersistenceError: The store read or update failed.
        """
        actor = self._actor(actor)
        claim = self.get_claim(claim_id)
        old_status = claim.status

        transition = self.state_machine.validate_transition(old_status, new_status, notes)

        changes = {"status": transition.to_status, "updated_at": datetime.now()}
        if notes and notes.strip():
            changes["notes"] = notes
        updated = self.store.update(CLAIMS, claim_id, changes)

        logger.info(
            f"Claim {updated.claim_number} transitioned {old_status.value} -> {updated.status.value}"
        )

        self._audit(
            updated,
            "STATUS_UPDATED",
            actor,
            old_values={"status": old_status.value},
            new_values={
                "claim_id": claim_id,
                "old_status": old_status.value,
                "new_status": updated.status.value,
                "notes": notes,
                "actor": actor,
                "timestamp": changes["updated_at"].isoformat(),
            },
            severity=AuditSeverity.WARNING if updated.status == ClaimStatus.REJECTED else AuditSeverity.INFO
        )

        if self.monitor:
            self.monitor.on_status_entered(updated, old_status)

        return updated

    def assign_adjuster(self, claim_id: str, adjuster_id: str, actor: Optional[str] = None) -> Claim:
        """Assign an adjuster. Orthogonal to status, so no transition check."""
        actor = self._actor(actor)
        claim = self.get_claim(claim_id)

        updated = self.store.update(CLAIMS, claim_id, {
            "assigned_adjuster": adjuster_id,
            "updated_at": datetime.now(),
        })

        logger.info(f"Claim {updated.claim_number} assigned to adjuster {adjuster_id}")

        self._audit(
            updated,
            "ADJUSTER_ASSIGNED",
            actor,
            old_values={"assigned_adjuster": claim.assigned_adjuster},
            new_values={"stage": updated.status.value, "assigned_adjuster": adjuster_id, "assigned_by": actor}
        )
        return updated

    def delete_claim(
        self,
        claim_id: str,
        actor: Optional[str] = None,
        reason: str = "User initiated deletion"
    ) -> bool:
        """
        Delete a claim and record its number in the audit trail.

        A failed audit write does not undo the deletion.
        """
        actor = self._actor(actor)
        claim = self.get_claim(claim_id)

        self.store.delete(CLAIMS, claim_id)
        logger.info(f"Deleted claim {claim.claim_number} ({claim_id})")

        self._audit(
            claim,
            "CLAIM_DELETED",
            actor,
            old_values=claim.model_dump(mode="json"),
            new_values={"stage": "deleted", "claim_number": claim.claim_number, "deletion_reason": reason},
            severity=AuditSeverity.WARNING
        )
        return True

    def get_audit_trail(self, claim_id: str) -> List[AuditRecord]:
        return self.audit.trail(RESOURCE_TYPE, claim_id)

    def bulk_update_status(
        self,
        claim_ids: Iterable[str],
        new_status: StatusLike,
        notes: Optional[str] = None,
        actor: Optional[str] = None
    ) -> List[Claim]:
        """Transition each claim; failures are logged and skipped."""
        updated_claims = []
        for claim_id in claim_ids:
            try:
                updated_claims.append(self.transition_claim(claim_id, new_status, notes, actor))
            except BrokerDeskError as e:
                logger.warning(f"Failed to update claim {claim_id}: {e}")
        return updated_claims

    def check_readiness(self, claim_id: str) -> ClaimsWorkflowCheck:
        """Whether the claim has what it needs to proceed to settlement."""
        claim = self.get_claim(claim_id)
        return self.engine.validate_claims_workflow(ClaimReadiness.from_claim(claim))

    def get_actionable_insights(self, now: Optional[datetime] = None) -> ActionableInsights:
        """Idle claims, SLA breaches and claims awaiting approval."""
        now = now or datetime.now()
        idle_cutoff = now - timedelta(days=self.settings.idle_after_days)
        registered_cutoff = now - timedelta(days=self.settings.registered_sla_days)
        investigating_cutoff = now - timedelta(days=self.settings.investigating_sla_days)

        claims = self.store.query(CLAIMS)

        def last_touched(claim: Claim) -> datetime:
            return claim.updated_at or claim.created_at

        idle = [c for c in claims if c.status not in CLOSED_OUT and last_touched(c) < idle_cutoff]
        breaches = [
            c for c in claims
            if (c.status == ClaimStatus.REGISTERED and c.created_at < registered_cutoff)
            or (c.status == ClaimStatus.INVESTIGATING and last_touched(c) < investigating_cutoff)
        ]
        pending = [c for c in claims if c.status == ClaimStatus.ASSESSED]

        return ActionableInsights(
            idle_claims=sorted(idle, key=last_touched),
            sla_breaches=sorted(breaches, key=lambda c: c.created_at),
            pending_approval=sorted(pending, key=last_touched)
        )
