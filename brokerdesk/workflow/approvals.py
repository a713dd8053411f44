"""
Approval Engine

Decides whether a transaction needs manual approval, who approves it next,
and which steps an approval workflow is made of.

Every lookup falls back to the most conservative outcome (manual approval,
SuperAdmin) instead of raising, so missing configuration only over-escalates.
"""
import logging
import math
from typing import Dict, List, Union

from brokerdesk.core.exceptions import ValidationError
from brokerdesk.core.models import (
    ApprovalLimit,
    ClaimReadiness,
    ClaimsWorkflowCheck,
    WorkflowStep,
)
from brokerdesk.core.states import WorkflowType

logger = logging.getLogger(__name__)

SUPER_ADMIN = "SuperAdmin"

Amount = Union[int, float]


def _limit(role_id: str, max_amount: float, auto_approve: bool) -> ApprovalLimit:
    return ApprovalLimit(role_id=role_id, max_amount=max_amount, auto_approve=auto_approve)


# Independent per-role ceilings, not an escalation chain
APPROVAL_LIMITS: Dict[WorkflowType, List[ApprovalLimit]] = {
    WorkflowType.UNDERWRITING: [
        _limit("SuperAdmin", 50_000_000, False),
        _limit("BrokerAdmin", 10_000_000, False),
        _limit("Underwriter", 5_000_000, True),
        _limit("Agent", 1_000_000, True),
    ],
    WorkflowType.CLAIMS: [
        _limit("SuperAdmin", 100_000_000, False),
        _limit("BrokerAdmin", 50_000_000, False),
        _limit("Underwriter", 10_000_000, True),
        _limit("Compliance", 5_000_000, True),
    ],
    WorkflowType.PAYMENTS: [
        _limit("SuperAdmin", 200_000_000, False),
        _limit("BrokerAdmin", 100_000_000, False),
    ],
    WorkflowType.REMITTANCE: [
        _limit("SuperAdmin", 500_000_000, False),
        _limit("BrokerAdmin", 50_000_000, False),
    ],
}


def _validate_amount(amount: Amount) -> float:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError(f"Amount must be a number, got {amount!r}")
    if not math.isfinite(amount) or amount < 0:
        raise ValidationError(f"Amount must be a finite non-negative number, got {amount!r}")
    return float(amount)


def _validate_role(role: str) -> str:
    if not isinstance(role, str) or not role.strip():
        raise ValidationError(f"Role must be a non-empty string, got {role!r}")
    return role


class ApprovalEngine:
    """
    Stateless approval rules over static limit tables.

    Decision logic:
    - Unknown role or domain: manual approval required
    - Next approver: highest ceiling that covers the amount, excluding the requester
    - Claims above fixed thresholds get Compliance / Underwriter review first
    """

    # Claims pre-review thresholds, kept apart from APPROVAL_LIMITS
    COMPLIANCE_REVIEW_THRESHOLD = 1_000_000
    UNDERWRITER_REVIEW_THRESHOLD = 5_000_000

    # Settlements above this need a recorded underwriter approval
    SETTLEMENT_UNDERWRITER_THRESHOLD = 2_000_000

    def __init__(self, approval_limits: Dict[WorkflowType, List[ApprovalLimit]] | None = None):
        self.approval_limits = approval_limits if approval_limits is not None else APPROVAL_LIMITS

    def get_limits(self, workflow_type: str) -> List[ApprovalLimit]:
        return list(self.approval_limits.get(workflow_type, []))

    def requires_approval(self, workflow_type: str, amount: Amount, user_role: str) -> bool:
        """True if the amount exceeds the role's ceiling or the role never auto-approves."""
        amount = _validate_amount(amount)
        _validate_role(user_role)

        user_limit = next(
            (limit for limit in self.get_limits(workflow_type) if limit.role_id == user_role),
            None
        )
        if user_limit is None:
            logger.warning(
                f"No {workflow_type} approval limit for role {user_role} - manual approval required"
            )
            return True

        return amount > user_limit.max_amount or not user_limit.auto_approve

    def get_next_approver(self, workflow_type: str, amount: Amount, current_role: str) -> str:
        """
        Pick the role that should approve next.

        Limits are scanned from the highest ceiling down (stable on ties); the
        first role other than current_role whose ceiling covers the amount wins.
        """
        amount = _validate_amount(amount)
        _validate_role(current_role)

        ordered = sorted(self.get_limits(workflow_type), key=lambda l: l.max_amount, reverse=True)
        for limit in ordered:
            if amount <= limit.max_amount and limit.role_id != current_role:
                return limit.role_id

        logger.info(
            f"No {workflow_type} approver covers {amount:,.0f} besides {current_role} - "
            f"falling back to {SUPER_ADMIN}"
        )
        return SUPER_ADMIN

    def create_workflow(
        self,
        workflow_type: str,
        amount: Amount,
        initiator_role: str
    ) -> List[WorkflowStep]:
        """
        Build the pending steps for a new approval workflow.

        Returns:
            Steps numbered from 1; empty if the initiator may auto-approve
        """
        amount = _validate_amount(amount)
        _validate_role(initiator_role)
        label = str(getattr(workflow_type, "value", workflow_type))

        steps: List[WorkflowStep] = []

        if workflow_type == WorkflowType.CLAIMS:
            if amount > self.COMPLIANCE_REVIEW_THRESHOLD:
                steps.append(WorkflowStep(name="Compliance Review", role_required="Compliance"))
            if amount > self.UNDERWRITER_REVIEW_THRESHOLD:
                steps.append(WorkflowStep(name="Underwriter Review", role_required="Underwriter"))

        if self.requires_approval(workflow_type, amount, initiator_role):
            steps.append(WorkflowStep(
                name=f"{label} Approval Required",
                role_required=self.get_next_approver(workflow_type, amount, initiator_role),
                approval_limit=amount
            ))

        for number, step in enumerate(steps, start=1):
            step.step_number = number

        return steps

    def validate_claims_workflow(self, claim_data: ClaimReadiness) -> ClaimsWorkflowCheck:
        """Collect the reasons a claim cannot proceed to settlement yet."""
        required_steps: List[str] = []

        if not claim_data.investigation_complete:
            required_steps.append("Complete claim investigation before proceeding")

        if (
            claim_data.settlement_amount > self.SETTLEMENT_UNDERWRITER_THRESHOLD
            and not claim_data.underwriter_approval
        ):
            required_steps.append(
                f"Underwriter approval required for settlements above "
                f"₦{self.SETTLEMENT_UNDERWRITER_THRESHOLD:,}"
            )

        if not claim_data.documents_complete:
            required_steps.append("Submit all required claim documents")

        return ClaimsWorkflowCheck(
            can_proceed=not required_steps,
            required_steps=required_steps
        )


# Global engine instance
approval_engine = ApprovalEngine()
