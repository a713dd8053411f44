"""
Workflow Service

Persists approval workflows built by the approval engine and records the
human decisions on their steps.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from brokerdesk.config import Settings, get_settings
from brokerdesk.core.exceptions import ValidationError, WorkflowNotFoundError
from brokerdesk.core.models import Workflow
from brokerdesk.core.states import AuditSeverity, StepAction, StepStatus
from brokerdesk.services.audit import AuditLogger
from brokerdesk.services.notifier import NotificationDispatcher
from brokerdesk.services.store import WORKFLOWS, RecordStore
from brokerdesk.workflow.approvals import ApprovalEngine, approval_engine
from brokerdesk.workflow.notifications import generate_notification

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "workflow"


class WorkflowService:
    """Creates workflows and processes their steps."""

    def __init__(
        self,
        store: RecordStore,
        audit: Optional[AuditLogger] = None,
        engine: Optional[ApprovalEngine] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        approver_contacts: Optional[Dict[str, str]] = None,
        settings: Optional[Settings] = None
    ):
        """
        Args:
            store: Persistence collaborator
            audit: Audit logger (defaults to one over the same store)
            engine: Approval rules
            dispatcher: Delivery collaborator for approval_required notices
            approver_contacts: Role id -> email of whoever approves for that role
            settings: Service settings
        """
        self.store = store
        self.audit = audit or AuditLogger(store)
        self.engine = engine or approval_engine
        self.dispatcher = dispatcher
        self.approver_contacts = approver_contacts or {}
        self.settings = settings or get_settings()

    def _notify_approver(self, workflow: Workflow) -> None:
        step = workflow.current
        if self.dispatcher is None or step is None:
            return
        self.dispatcher.dispatch(generate_notification("approval_required", {
            "workflow_type": workflow.workflow_type,
            "amount": workflow.amount,
            "approver_email": self.approver_contacts.get(step.role_required),
        }))

    def start_workflow(
        self,
        workflow_type: str,
        reference_type: str,
        reference_id: str,
        amount: float,
        initiator_role: str,
        actor: Optional[str] = None,
        metadata: Optional[dict] = None
    ) -> Workflow:
        """
        Create and persist a workflow for a transaction.

        A workflow that needs no step is approved on creation.
        """
        actor = actor or self.settings.default_actor
        steps = self.engine.create_workflow(workflow_type, amount, initiator_role)

        workflow = Workflow(
            organization_id=self.settings.organization_id,
            workflow_type=str(getattr(workflow_type, "value", workflow_type)),
            reference_type=reference_type,
            reference_id=reference_id,
            amount=amount,
            steps=steps,
            total_steps=len(steps),
            metadata={"initiator_role": initiator_role, **(metadata or {})},
            created_by=actor
        )
        if not steps:
            workflow.status = StepStatus.APPROVED
            workflow.completed_at = datetime.now()

        workflow = self.store.insert(WORKFLOWS, workflow)

        logger.info(
            f"Started {workflow.workflow_type} workflow {workflow.id} for {reference_type} "
            f"{reference_id}: {len(steps)} step(s), status {workflow.status.value}"
        )

        self.audit.record(
            resource_type=RESOURCE_TYPE,
            resource_id=workflow.id,
            action="WORKFLOW_CREATED",
            actor=actor,
            new_values={
                "workflow_type": workflow.workflow_type,
                "amount": amount,
                "steps": [s.role_required for s in steps],
                "status": workflow.status.value,
            },
            organization_id=workflow.organization_id
        )

        self._notify_approver(workflow)
        return workflow

    def get_workflow(self, workflow_id: str) -> Workflow:
        workflow = self.store.get(WORKFLOWS, workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(
                f"Workflow {workflow_id} not found", details={"workflow_id": workflow_id}
            )
        return workflow

    def process_step(
        self,
        workflow_id: str,
        step_id: str,
        action: StepAction,
        actor: str,
        comments: Optional[str] = None
    ) -> Workflow:
        """
        Approve or reject a pending step.

        Approving the last step approves the workflow; rejecting any step
        rejects it. Decided steps cannot be decided again.
        """
        workflow = self.get_workflow(workflow_id)
        step = workflow.get_step(step_id)
        if step is None:
            raise ValidationError(
                f"Workflow {workflow_id} has no step {step_id}",
                details={"workflow_id": workflow_id, "step_id": step_id}
            )
        if workflow.status != StepStatus.PENDING:
            raise ValidationError(
                f"Workflow {workflow_id} is already {workflow.status.value}",
                details={"workflow_id": workflow_id, "status": workflow.status.value}
            )

        if step.status == StepStatus.PENDING and step.step_number != workflow.current_step:
            raise ValidationError(
                f"Step {step.step_number} cannot be decided before step {workflow.current_step}",
                details={"workflow_id": workflow_id, "step_id": step_id}
            )
        try:
            action = StepAction(action)
        except ValueError:
            raise ValidationError(f"Unknown step action {action!r}")

        step.decide(action, actor, comments)

        changes: dict = {"steps": workflow.steps}
        if action == StepAction.APPROVE:
            if step.step_number >= workflow.total_steps:
                changes.update(status=StepStatus.APPROVED, completed_at=datetime.now())
            else:
                changes["current_step"] = step.step_number + 1
        else:
            changes.update(status=StepStatus.REJECTED, completed_at=datetime.now())

        updated = self.store.update(WORKFLOWS, workflow_id, changes)

        logger.info(
            f"Workflow {workflow_id} step {step.step_number} ({step.name}) {step.status.value} "
            f"by {actor}; workflow is {updated.status.value}"
        )

        self.audit.record(
            resource_type=RESOURCE_TYPE,
            resource_id=workflow_id,
            action=f"STEP_{step.status.value.upper()}",
            actor=actor,
            old_values={"step_status": StepStatus.PENDING.value},
            new_values={
                "step_id": step.id,
                "step_name": step.name,
                "step_status": step.status.value,
                "workflow_status": updated.status.value,
                "comments": comments,
            },
            severity=AuditSeverity.WARNING if action == StepAction.REJECT else AuditSeverity.INFO,
            organization_id=updated.organization_id
        )

        if updated.status == StepStatus.PENDING:
            self._notify_approver(updated)

        return updated

    def get_workflows(
        self,
        status: Optional[StepStatus] = None,
        workflow_type: Optional[str] = None
    ) -> List[Workflow]:
        """Workflows, newest first, optionally filtered."""
        workflows = self.store.query(
            WORKFLOWS,
            lambda w: (status is None or w.status == status)
            and (workflow_type is None or w.workflow_type == workflow_type)
        )
        return sorted(workflows, key=lambda w: w.created_at, reverse=True)

    def get_pending_workflows(self, roles: Iterable[str]) -> List[Workflow]:
        """Open workflows whose current step needs one of the given roles."""
        roles = set(roles)
        return [
            w for w in self.get_workflows(status=StepStatus.PENDING)
            if w.current is not None and w.current.role_required in roles
        ]
