import re
from datetime import datetime, timedelta

import pytest

from brokerdesk.core.exceptions import ClaimNotFoundError, PersistenceError, ValidationError
from brokerdesk.core.states import AuditSeverity, ClaimStatus
from brokerdesk.services.claims import ClaimWorkflowService
from brokerdesk.services.store import AUDIT_LOGS, CLAIMS

from conftest import FailingUpdateStore


def walk(service, claim_id, *statuses):
    claim = None
    for status in statuses:
        claim = service.transition_claim(claim_id, status)
    return claim


def actions(service, claim_id):
    return [r.action for r in service.get_audit_trail(claim_id)]


class TestCreateClaim:

    def test_registers_claim_with_org_prefixed_number(self, new_claim):
        assert new_claim.status == ClaimStatus.REGISTERED
        assert re.fullmatch(r"LAGC\d{4}", new_claim.claim_number)
        assert new_claim.organization_id == "org-1"
        assert new_claim.created_by == "agent-7"

    def test_falls_back_to_org_prefix(self, store, claim_data):
        from brokerdesk.config import Settings

        service = ClaimWorkflowService(store, settings=Settings(organization_name=""))
        claim = service.create_claim(claim_data)
        assert claim.claim_number.startswith("ORGC")
        assert claim.created_by == "system"

    def test_audits_registration(self, claim_service, new_claim):
        trail = claim_service.get_audit_trail(new_claim.id)
        assert [r.action for r in trail] == ["CLAIM_REGISTERED"]
        assert trail[0].new_values["claim_number"] == new_claim.claim_number

    def test_notifies_client(self, dispatcher, new_claim):
        sent = dispatcher.sent()
        assert [(n.subject, n.recipient) for n in sent] == [("Claim Registered", "adaeze@example.com")]


class TestTransitionClaim:

    def test_moves_claim_and_appends_audit(self, claim_service, store, new_claim):
        updated = claim_service.transition_claim(new_claim.id, "investigating", actor="adjuster-1")

        assert updated.status == ClaimStatus.INVESTIGATING
        assert updated.updated_at is not None
        assert store.get(CLAIMS, new_claim.id).status == ClaimStatus.INVESTIGATING

        audit = next(r for r in claim_service.get_audit_trail(new_claim.id) if r.action == "STATUS_UPDATED")
        assert audit.actor == "adjuster-1"
        assert audit.new_values["claim_id"] == new_claim.id
        assert audit.new_values["old_status"] == "registered"
        assert audit.new_values["new_status"] == "investigating"
        assert audit.new_values["notes"] is None
        assert "timestamp" in audit.new_values

    def test_full_lifecycle(self, claim_service, new_claim):
        closed = walk(claim_service, new_claim.id, "investigating", "assessed", "approved", "settled", "closed")
        assert closed.status == ClaimStatus.CLOSED
        assert claim_service.state_machine.get_available_transitions(closed.status) == []

    def test_illegal_transition_does_not_mutate(self, claim_service, store, new_claim):
        with pytest.raises(ValidationError):
            claim_service.transition_claim(new_claim.id, "approved")

        assert store.get(CLAIMS, new_claim.id).status == ClaimStatus.REGISTERED
        assert actions(claim_service, new_claim.id) == ["CLAIM_REGISTERED"]

    @pytest.mark.parametrize("path", [[], ["investigating"], ["investigating", "assessed"]])
    @pytest.mark.parametrize("notes", [None, "", "    "])
    def test_rejection_without_notes_fails(self, claim_service, store, new_claim, path, notes):
        walk(claim_service, new_claim.id, *path)
        before = store.get(CLAIMS, new_claim.id).status

        with pytest.raises(ValidationError, match="notes required"):
            claim_service.transition_claim(new_claim.id, "rejected", notes=notes)

        assert store.get(CLAIMS, new_claim.id).status == before

    def test_rejection_with_notes(self, claim_service, new_claim):
        rejected = claim_service.transition_claim(
            new_claim.id, ClaimStatus.REJECTED, notes="Policy lapsed before the loss"
        )
        assert rejected.status == ClaimStatus.REJECTED
        assert rejected.notes == "Policy lapsed before the loss"

        audit = next(r for r in claim_service.get_audit_trail(new_claim.id) if r.action == "STATUS_UPDATED")
        assert audit.new_values["notes"] == "Policy lapsed before the loss"
        assert audit.severity == AuditSeverity.WARNING

    def test_unknown_claim(self, claim_service):
        with pytest.raises(ClaimNotFoundError):
            claim_service.transition_claim("missing", "investigating")

    def test_persistence_failure_surfaces(self, settings, claim_data):
        store = FailingUpdateStore()
        service = ClaimWorkflowService(store, settings=settings)
        claim = service.create_claim(claim_data)

        with pytest.raises(PersistenceError):
            service.transition_claim(claim.id, "investigating")

        assert store.get(CLAIMS, claim.id).status == ClaimStatus.REGISTERED
        assert actions(service, claim.id) == ["CLAIM_REGISTERED"]

    def test_audit_failure_does_not_block(self, make_audit_failing_service, claim_data):
        service = make_audit_failing_service()
        claim = service.create_claim(claim_data)

        updated = service.transition_claim(claim.id, "investigating")

        assert updated.status == ClaimStatus.INVESTIGATING
        assert service.store.query(AUDIT_LOGS) == []


class TestStatusHooks:

    def test_settlement_and_voucher_notifications(self, claim_service, dispatcher, new_claim):
        walk(claim_service, new_claim.id, "investigating", "assessed", "approved", "settled")
        subjects = [n.subject for n in dispatcher.sent()]

        assert "Discharge Voucher Ready" in subjects
        assert "Claim Settlement Processed" in subjects
        assert subjects.count("Claim Status Update") == 2  # investigating, assessed

    def test_investigation_notice_goes_to_known_adjuster(self, claim_service, dispatcher, new_claim):
        claim_service.monitor.contacts["adj-9"] = "adj9@lagosbrokers.ng"
        claim_service.assign_adjuster(new_claim.id, "adj-9")
        claim_service.transition_claim(new_claim.id, "investigating")

        sent = [(n.subject, n.recipient) for n in dispatcher.sent()]
        assert ("Claim Investigation Assigned", "adj9@lagosbrokers.ng") in sent

    def test_failing_hook_does_not_undo_transition(self, claim_service, new_claim):
        def broken(claim, previous):
            raise RuntimeError("template service down")

        claim_service.monitor.register_handler(ClaimStatus.INVESTIGATING, broken)
        updated = claim_service.transition_claim(new_claim.id, "investigating")
        assert updated.status == ClaimStatus.INVESTIGATING


class TestAssignAndDelete:

    def test_assign_adjuster_leaves_status_alone(self, claim_service, new_claim):
        updated = claim_service.assign_adjuster(new_claim.id, "adj-3", actor="manager-1")

        assert updated.assigned_adjuster == "adj-3"
        assert updated.status == ClaimStatus.REGISTERED
        assert "ADJUSTER_ASSIGNED" in actions(claim_service, new_claim.id)
        assert [c.id for c in claim_service.get_assigned_to("adj-3")] == [new_claim.id]

    def test_delete_records_claim_number(self, claim_service, new_claim):
        assert claim_service.delete_claim(new_claim.id, actor="manager-1") is True

        with pytest.raises(ClaimNotFoundError):
            claim_service.get_claim(new_claim.id)

        deletion = next(r for r in claim_service.get_audit_trail(new_claim.id) if r.action == "CLAIM_DELETED")
        assert deletion.new_values["claim_number"] == new_claim.claim_number
        assert deletion.actor == "manager-1"

    def test_delete_survives_audit_failure(self, make_audit_failing_service, claim_data):
        service = make_audit_failing_service()
        claim = service.create_claim(claim_data)

        assert service.delete_claim(claim.id) is True
        assert service.store.get(CLAIMS, claim.id) is None

    def test_delete_failure_surfaces(self, settings, claim_data):
        service = ClaimWorkflowService(FailingUpdateStore(), settings=settings)
        claim = service.create_claim(claim_data)

        with pytest.raises(PersistenceError):
            service.delete_claim(claim.id)
        assert service.get_claim(claim.id).id == claim.id


class TestQueries:

    def test_bulk_update_skips_failures(self, claim_service, claim_data, new_claim):
        other = claim_service.create_claim(claim_data)
        walk(claim_service, other.id, "investigating")

        updated = claim_service.bulk_update_status([new_claim.id, other.id, "missing"], "investigating")

        assert [c.id for c in updated] == [new_claim.id]

    def test_get_by_status(self, claim_service, claim_data, new_claim):
        other = claim_service.create_claim(claim_data)
        walk(claim_service, other.id, "investigating")

        assert [c.id for c in claim_service.get_by_status(ClaimStatus.INVESTIGATING)] == [other.id]

    def test_actionable_insights(self, claim_service, claim_data, new_claim):
        assessed = claim_service.create_claim(claim_data)
        walk(claim_service, assessed.id, "investigating", "assessed")
        settled = claim_service.create_claim(claim_data)
        walk(claim_service, settled.id, "investigating", "assessed", "approved", "settled")

        insights = claim_service.get_actionable_insights(now=datetime.now() + timedelta(days=6))

        assert {c.id for c in insights.idle_claims} == {new_claim.id, assessed.id}
        assert [c.id for c in insights.sla_breaches] == [new_claim.id]
        assert [c.id for c in insights.pending_approval] == [assessed.id]

    def test_fresh_claims_are_not_flagged(self, claim_service, new_claim):
        insights = claim_service.get_actionable_insights()
        assert insights.idle_claims == []
        assert insights.sla_breaches == []

    def test_readiness_of_new_claim(self, claim_service, new_claim):
        check = claim_service.check_readiness(new_claim.id)
        assert check.can_proceed is False
        assert len(check.required_steps) == 2
