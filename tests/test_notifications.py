import pytest

from brokerdesk.core.states import ClaimStatus, NotificationChannel, NotificationPriority
from brokerdesk.workflow.notifications import TEMPLATES, format_naira, generate_notification

EVENTS = [
    "quote_ready",
    "approval_required",
    "policy_renewal",
    "claim_registered",
    "claim_investigation_assigned",
    "claim_update",
    "settlement_processed",
    "discharge_voucher_ready",
    "compliance_alert",
    "audit_notification",
    "payment_received",
    "remittance_ready",
]


def test_registry_is_the_closed_event_set():
    assert set(TEMPLATES) == set(EVENTS)


@pytest.mark.parametrize("event", EVENTS)
def test_every_event_renders_without_data(event):
    notification = generate_notification(event, {})
    assert notification.subject
    assert "{" not in notification.template
    assert notification.recipients == []


def test_unknown_event_falls_back_to_approval_required():
    data = {"workflow_type": "payments", "amount": 120_000_000, "approver_email": "cfo@broker.ng"}

    fallback = generate_notification("unknown_event", data)
    expected = generate_notification("approval_required", data)

    assert fallback == expected
    assert fallback.priority == NotificationPriority.HIGH


def test_approval_required_formats_amount_in_naira():
    notification = generate_notification("approval_required", {
        "workflow_type": "remittance",
        "amount": 1_500_000,
        "approver_email": "admin@broker.ng",
    })

    assert notification.type == NotificationChannel.EMAIL
    assert notification.subject == "Approval Required - High Value Transaction"
    assert notification.template == (
        "A remittance transaction requires your approval. Amount: ₦1,500,000. "
        "Please review and approve via your dashboard."
    )
    assert notification.recipients == ["admin@broker.ng"]


def test_claim_update_uses_status_value_and_optional_info():
    without_info = generate_notification("claim_update", {
        "claim_number": "LAGC1234",
        "status": ClaimStatus.INVESTIGATING,
        "client_email": "client@example.com",
    })
    assert without_info.template == "Your claim LAGC1234 status has been updated to investigating."

    with_info = generate_notification("claim_update", {
        "claim_number": "LAGC1234",
        "status": "settled",
        "additional_info": "Payment sent.",
    })
    assert with_info.template.endswith("updated to settled. Payment sent.")


def test_quote_ready_substitutes_client_fields():
    notification = generate_notification("quote_ready", {
        "client_name": "Tunde Bakare",
        "quote_id": "Q-2026-118",
        "client_email": "tunde@example.com",
    })
    assert notification.template.startswith("Dear Tunde Bakare, your quote Q-2026-118 is ready")
    assert notification.priority == NotificationPriority.MEDIUM


def test_compliance_alert_is_urgent():
    notification = generate_notification("compliance_alert", {
        "issue": "Unlicensed insurer selected",
        "reference": "RFQ-77",
        "compliance_email": ["compliance@broker.ng", None, "legal@broker.ng"],
    })
    assert notification.priority == NotificationPriority.URGENT
    assert notification.recipients == ["compliance@broker.ng", "legal@broker.ng"]


def test_rendering_does_not_evaluate_field_expressions():
    notification = generate_notification("quote_ready", {"client_name": "{quote_id}", "quote_id": "Q1"})
    assert "Dear {quote_id}," in notification.template


@pytest.mark.parametrize("amount, expected", [
    (0, "₦0"),
    (2_000_000, "₦2,000,000"),
    (2_000_000.0, "₦2,000,000"),
    (1500.5, "₦1,500.50"),
    (None, ""),
])
def test_format_naira(amount, expected):
    assert format_naira(amount) == expected


@pytest.mark.parametrize("value, expected", [
    (5, ["5"]),
    (("a@broker.ng", ""), ["a@broker.ng"]),
])
def test_recipient_field_shapes(value, expected):
    notification = generate_notification("quote_ready", {"client_email": value})
    assert notification.recipients == expected
