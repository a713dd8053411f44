import math

import pytest

from brokerdesk.core.exceptions import ValidationError
from brokerdesk.core.models import ClaimReadiness, WorkflowStep
from brokerdesk.core.states import StepAction, StepStatus, WorkflowType
from brokerdesk.workflow.approvals import APPROVAL_LIMITS, SUPER_ADMIN, ApprovalEngine


@pytest.fixture
def engine():
    return ApprovalEngine()


class TestRequiresApproval:

    def test_above_role_ceiling(self, engine):
        # Compliance may approve claims up to 5,000,000
        assert engine.requires_approval("claims", 10_000_000, "Compliance") is True

    def test_role_missing_from_domain_fails_safe(self, engine):
        assert engine.requires_approval("claims", 1_000_000, "Agent") is True

    def test_unknown_domain_fails_safe(self, engine):
        assert engine.requires_approval("reinsurance", 1, "SuperAdmin") is True

    def test_within_auto_approve_ceiling(self, engine):
        assert engine.requires_approval("underwriting", 1_000_000, "Underwriter") is False
        assert engine.requires_approval("underwriting", 5_000_000, "Underwriter") is False

    def test_ceiling_is_inclusive_boundary(self, engine):
        assert engine.requires_approval("underwriting", 5_000_001, "Underwriter") is True

    def test_roles_without_auto_approve_always_need_approval(self, engine):
        assert engine.requires_approval("payments", 10, "BrokerAdmin") is True
        assert engine.requires_approval("remittance", 10, "SuperAdmin") is True

    def test_accepts_enum_domain(self, engine):
        assert engine.requires_approval(WorkflowType.CLAIMS, 100, "Underwriter") is False

    @pytest.mark.parametrize("amount", [-1, math.inf, math.nan, "1000", None, True])
    def test_malformed_amount(self, engine, amount):
        with pytest.raises(ValidationError):
            engine.requires_approval("claims", amount, "Compliance")

    @pytest.mark.parametrize("role", ["", "   ", None])
    def test_malformed_role(self, engine, role):
        with pytest.raises(ValidationError):
            engine.requires_approval("claims", 100, role)


class TestNextApprover:

    def test_picks_highest_ceiling_that_covers_amount(self, engine):
        approver = engine.get_next_approver("underwriting", 8_000_000, "Underwriter")
        assert approver == "SuperAdmin"

        ceilings = {l.role_id: l.max_amount for l in APPROVAL_LIMITS[WorkflowType.UNDERWRITING]}
        assert ceilings[approver] >= 8_000_000
        assert approver != "Underwriter"

    def test_skips_current_role(self, engine):
        assert engine.get_next_approver("underwriting", 8_000_000, "SuperAdmin") == "BrokerAdmin"

    def test_falls_back_to_super_admin_when_nobody_covers(self, engine):
        assert engine.get_next_approver("claims", 500_000_000, "BrokerAdmin") == SUPER_ADMIN

    def test_falls_back_when_only_current_role_covers(self, engine):
        assert engine.get_next_approver("payments", 150_000_000, "SuperAdmin") == SUPER_ADMIN

    def test_unknown_domain_falls_back(self, engine):
        assert engine.get_next_approver("reinsurance", 10, "Agent") == SUPER_ADMIN

    def test_does_not_reorder_shared_table(self, engine):
        before = list(APPROVAL_LIMITS[WorkflowType.CLAIMS])
        engine.get_next_approver("claims", 1, "Agent")
        assert APPROVAL_LIMITS[WorkflowType.CLAIMS] == before


class TestCreateWorkflow:

    def test_large_claim_gets_review_steps_then_approval(self, engine):
        steps = engine.create_workflow("claims", 6_000_000, "Agent")

        assert [s.role_required for s in steps] == ["Compliance", "Underwriter", "SuperAdmin"]
        assert [s.step_number for s in steps] == [1, 2, 3]
        assert all(s.status == StepStatus.PENDING for s in steps)
        assert steps[-1].approval_limit == 6_000_000
        assert steps[-1].name == "claims Approval Required"

    def test_mid_size_claim_gets_compliance_review_only(self, engine):
        steps = engine.create_workflow("claims", 2_000_000, "Compliance")
        assert [s.role_required for s in steps] == ["Compliance"]

    def test_thresholds_are_exclusive(self, engine):
        assert engine.create_workflow("claims", 1_000_000, "Underwriter") == []
        steps = engine.create_workflow("claims", 5_000_000, "Underwriter")
        assert [s.role_required for s in steps] == ["Compliance"]

    def test_auto_approvable_transaction_has_no_steps(self, engine):
        assert engine.create_workflow("underwriting", 500_000, "Agent") == []

    def test_other_domains_have_no_pre_steps(self, engine):
        steps = engine.create_workflow("remittance", 60_000_000, "BrokerAdmin")
        assert [s.role_required for s in steps] == ["SuperAdmin"]

    def test_step_ids_are_unique(self, engine):
        steps = engine.create_workflow("claims", 6_000_000, "Agent")
        assert len({s.id for s in steps}) == 3


class TestStepDecision:

    def test_step_is_terminal_after_decision(self):
        step = WorkflowStep(name="Compliance Review", role_required="Compliance")
        step.decide(StepAction.APPROVE, "compliance-officer", "Documents verified")

        assert step.status == StepStatus.APPROVED
        assert step.approved_by == "compliance-officer"
        assert step.approved_at is not None

        with pytest.raises(ValidationError):
            step.decide(StepAction.REJECT, "someone-else")
        assert step.status == StepStatus.APPROVED


class TestValidateClaimsWorkflow:

    def test_investigation_incomplete(self, engine):
        check = engine.validate_claims_workflow(ClaimReadiness(
            investigation_complete=False, documents_complete=True, settlement_amount=0
        ))
        assert check.can_proceed is False
        assert len(check.required_steps) == 1
        assert "investigation" in check.required_steps[0]

    def test_large_settlement_needs_underwriter(self, engine):
        check = engine.validate_claims_workflow(ClaimReadiness(
            investigation_complete=True, documents_complete=True, settlement_amount=2_500_000
        ))
        assert check.can_proceed is False
        assert check.required_steps == ["Underwriter approval required for settlements above ₦2,000,000"]

    def test_large_settlement_with_underwriter_approval(self, engine):
        check = engine.validate_claims_workflow(ClaimReadiness(
            investigation_complete=True,
            documents_complete=True,
            settlement_amount=2_500_000,
            underwriter_approval=True
        ))
        assert check.can_proceed is True
        assert check.required_steps == []

    def test_collects_every_reason(self, engine):
        check = engine.validate_claims_workflow(ClaimReadiness(settlement_amount=3_000_000))
        assert len(check.required_steps) == 3
