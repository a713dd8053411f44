"""
Status Monitor

Watches claim status changes and triggers notifications.
"""
import logging
from typing import Callable, Dict, List, Optional

from brokerdesk.core.models import Claim
from brokerdesk.core.states import ClaimStatus
from brokerdesk.services.notifier import NotificationDispatcher
from brokerdesk.workflow.notifications import generate_notification

logger = logging.getLogger(__name__)

StatusHandler = Callable[[Claim, ClaimStatus], None]


class StatusMonitor:
    """
    Runs hooks when a claim enters a status.

    Statuses without a registered handler get the generic claim_update
    notification to the client.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        contacts: Optional[Dict[str, str]] = None
    ):
        """
        Args:
            dispatcher: Delivery collaborator for rendered notifications
            contacts: User id -> email, used to reach adjusters
        """
        self.dispatcher = dispatcher
        self.contacts = contacts or {}
        self._event_handlers: Dict[ClaimStatus, List[StatusHandler]] = {}

        self._register_default_handlers()

    def _register_default_handlers(self) -> None:
        self.register_handler(ClaimStatus.INVESTIGATING, self._on_investigating)
        self.register_handler(ClaimStatus.APPROVED, self._on_approved)
        self.register_handler(ClaimStatus.SETTLED, self._on_settled)

    def register_handler(self, status: ClaimStatus, handler: StatusHandler) -> None:
        """Register a handler to be called when a claim enters a status."""
        self._event_handlers.setdefault(status, []).append(handler)
        logger.debug(f"Registered handler for status {status.value}")

    def _claim_data(self, claim: Claim) -> dict:
        return {
            "client_name": claim.client_name,
            "client_email": claim.client_email,
            "claim_number": claim.claim_number,
            "policy_number": claim.policy_number,
            "status": claim.status,
            "estimated_loss": claim.estimated_loss,
            "amount": claim.settlement_amount if claim.settlement_amount is not None else claim.estimated_loss,
        }

    def _on_investigating(self, claim: Claim, previous: ClaimStatus) -> None:
        data = self._claim_data(claim)
        data["adjuster_email"] = self.contacts.get(claim.assigned_adjuster or "")
        self.dispatcher.dispatch(generate_notification("claim_investigation_assigned", data))
        self._on_status_update(claim, previous)

    def _on_approved(self, claim: Claim, previous: ClaimStatus) -> None:
        self.dispatcher.dispatch(generate_notification("discharge_voucher_ready", self._claim_data(claim)))

    def _on_settled(self, claim: Claim, previous: ClaimStatus) -> None:
        self.dispatcher.dispatch(generate_notification("settlement_processed", self._claim_data(claim)))

    def _on_status_update(self, claim: Claim, previous: ClaimStatus) -> None:
        data = self._claim_data(claim)
        if claim.notes:
            data["additional_info"] = claim.notes
        self.dispatcher.dispatch(generate_notification("claim_update", data))

    def on_status_entered(self, claim: Claim, previous: ClaimStatus) -> None:
        """
        Called after a claim has moved into claim.status.

        Handler failures are logged and never undo the status change.
        """
        handlers = self._event_handlers.get(claim.status) or [self._on_status_update]

        for handler in handlers:
            try:
                handler(claim, previous)
            except Exception as e:
                logger.error(
                    f"Status hook for claim {claim.id} ({previous.value} -> {claim.status.value}) failed: {e}"
                )
