"""
Notification Templates

Fixed registry of notification messages keyed by event name. Rendering is
plain str.format substitution; nothing here sends anything.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping

from brokerdesk.core.models import NotificationTemplate
from brokerdesk.core.states import NotificationChannel, NotificationPriority

logger = logging.getLogger(__name__)

FALLBACK_EVENT = "approval_required"

# Rendered as naira with thousands separators
MONEY_FIELDS = ("amount", "estimated_loss", "settlement_amount")


@dataclass(frozen=True)
class _TemplateSpec:
    subject: str
    body: str
    recipient_field: str
    priority: NotificationPriority
    channel: NotificationChannel = NotificationChannel.EMAIL


TEMPLATES: Dict[str, _TemplateSpec] = {
    "quote_ready": _TemplateSpec(
        subject="Quote Ready for Review",
        body=(
            "Dear {client_name}, your quote {quote_id} is ready for review. "
            "Please log in to your portal to view details."
        ),
        recipient_field="client_email",
        priority=NotificationPriority.MEDIUM,
    ),
    "approval_required": _TemplateSpec(
        subject="Approval Required - High Value Transaction",
        body=(
            "A {workflow_type} transaction requires your approval. Amount: {amount}. "
            "Please review and approve via your dashboard."
        ),
        recipient_field="approver_email",
        priority=NotificationPriority.HIGH,
    ),
    "policy_renewal": _TemplateSpec(
        subject="Policy Renewal Reminder",
        body=(
            "Your policy {policy_number} expires on {expiry_date}. "
            "Please contact us to renew and avoid coverage gaps."
        ),
        recipient_field="client_email",
        priority=NotificationPriority.HIGH,
    ),
    "claim_registered": _TemplateSpec(
        subject="Claim Registered",
        body=(
            "Dear {client_name}, your claim {claim_number} under policy {policy_number} "
            "has been registered. We will keep you informed as it progresses."
        ),
        recipient_field="client_email",
        priority=NotificationPriority.MEDIUM,
    ),
    "claim_investigation_assigned": _TemplateSpec(
        subject="Claim Investigation Assigned",
        body=(
            "Claim {claim_number} has been assigned to you for investigation. "
            "Estimated loss: {estimated_loss}."
        ),
        recipient_field="adjuster_email",
        priority=NotificationPriority.HIGH,
    ),
    "claim_update": _TemplateSpec(
        subject="Claim Status Update",
        body="Your claim {claim_number} status has been updated to {status}. {additional_info}",
        recipient_field="client_email",
        priority=NotificationPriority.MEDIUM,
    ),
    "settlement_processed": _TemplateSpec(
        subject="Claim Settlement Processed",
        body=(
            "Settlement of {amount} for claim {claim_number} has been processed. "
            "Funds will be credited to your nominated account."
        ),
        recipient_field="client_email",
        priority=NotificationPriority.HIGH,
    ),
    "discharge_voucher_ready": _TemplateSpec(
        subject="Discharge Voucher Ready",
        body=(
            "The discharge voucher for claim {claim_number} ({amount}) is ready. "
            "Please sign and return it to complete your settlement."
        ),
        recipient_field="client_email",
        priority=NotificationPriority.HIGH,
    ),
    "compliance_alert": _TemplateSpec(
        subject="Compliance Alert",
        body="Compliance alert: {issue}. Reference: {reference}. Immediate review is required.",
        recipient_field="compliance_email",
        priority=NotificationPriority.URGENT,
    ),
    "audit_notification": _TemplateSpec(
        subject="Audit Notification",
        body="Audit event {action} recorded on {resource_type} {resource_id} by {actor}.",
        recipient_field="auditor_email",
        priority=NotificationPriority.LOW,
    ),
    "payment_received": _TemplateSpec(
        subject="Payment Confirmation",
        body=(
            "We have received your payment of {amount} for policy {policy_number}. "
            "Receipt attached."
        ),
        recipient_field="client_email",
        priority=NotificationPriority.MEDIUM,
    ),
    "remittance_ready": _TemplateSpec(
        subject="Remittance Advice Ready",
        body="Remittance advice {remittance_id} for {amount} is ready for processing.",
        recipient_field="underwriter_email",
        priority=NotificationPriority.HIGH,
    ),
}


class _TemplateData(dict):
    """Missing fields render as empty strings."""

    def __missing__(self, key: str) -> str:
        return ""


def format_naira(amount: Any) -> str:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return "" if amount is None else str(amount)
    if float(amount).is_integer():
        return f"₦{int(amount):,}"
    return f"₦{amount:,.2f}"


def _prepare(data: Mapping[str, Any]) -> _TemplateData:
    prepared = _TemplateData()
    for key, value in data.items():
        if value is None:
            continue
        if key in MONEY_FIELDS:
            value = format_naira(value)
        elif isinstance(value, Enum):
            value = value.value
        prepared[key] = value
    return prepared


def _recipients(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value if v]
    return [str(value)]


def generate_notification(event_name: str, data: Mapping[str, Any] | None = None) -> NotificationTemplate:
    """
    Render the template registered for event_name.

    Unknown event names fall back to the approval_required template.
    """
    entry = TEMPLATES.get(event_name)
    if entry is None:
        logger.debug(f"Unknown notification event {event_name!r} - using {FALLBACK_EVENT}")
        entry = TEMPLATES[FALLBACK_EVENT]

    values = _prepare(data or {})

    return NotificationTemplate(
        type=entry.channel,
        subject=entry.subject.format_map(values),
        template=entry.body.format_map(values).strip(),
        recipients=_recipients((data or {}).get(entry.recipient_field)),
        priority=entry.priority
    )
