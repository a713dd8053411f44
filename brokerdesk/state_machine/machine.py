"""
Claim State Machine

Holds the fixed claim status table and validates requested status changes.
"""
from typing import Dict, List, Optional, Union

from brokerdesk.core.exceptions import ValidationError
from brokerdesk.core.models import ClaimTransition
from brokerdesk.core.states import ClaimStatus

StatusLike = Union[ClaimStatus, str]


def _transition(
    from_status: ClaimStatus,
    to_status: ClaimStatus,
    label: str,
    description: str,
    requires_notes: bool = False
) -> ClaimTransition:
    return ClaimTransition(
        from_status=from_status,
        to_status=to_status,
        label=label,
        description=description,
        requires_notes=requires_notes
    )


class ClaimStateMachine:
    """
    State machine for claim status changes.

    There is no generic rollback: a claim only moves along the edges below.
    REJECTED and CLOSED have no outgoing edges.
    """

    TRANSITIONS: Dict[ClaimStatus, List[ClaimTransition]] = {
        ClaimStatus.REGISTERED: [
            _transition(
                ClaimStatus.REGISTERED, ClaimStatus.INVESTIGATING,
                "Start Investigation", "Begin claim investigation process"
            ),
            _transition(
                ClaimStatus.REGISTERED, ClaimStatus.REJECTED,
                "Reject Claim", "Reject claim due to policy violations",
                requires_notes=True
            ),
        ],
        ClaimStatus.INVESTIGATING: [
            _transition(
                ClaimStatus.INVESTIGATING, ClaimStatus.ASSESSED,
                "Complete Assessment", "Mark investigation complete and ready for approval"
            ),
            _transition(
                ClaimStatus.INVESTIGATING, ClaimStatus.REJECTED,
                "Reject Claim", "Reject claim based on investigation findings",
                requires_notes=True
            ),
        ],
        ClaimStatus.ASSESSED: [
            _transition(
                ClaimStatus.ASSESSED, ClaimStatus.APPROVED,
                "Approve Claim", "Approve claim for settlement"
            ),
            _transition(
                ClaimStatus.ASSESSED, ClaimStatus.REJECTED,
                "Reject Claim", "Reject claim after assessment",
                requires_notes=True
            ),
        ],
        ClaimStatus.APPROVED: [
            _transition(
                ClaimStatus.APPROVED, ClaimStatus.SETTLED,
                "Mark as Settled", "Confirm claim settlement payment"
            ),
        ],
        ClaimStatus.SETTLED: [
            _transition(
                ClaimStatus.SETTLED, ClaimStatus.CLOSED,
                "Close Claim", "Close claim after settlement completion"
            ),
        ],
    }

    @staticmethod
    def _coerce(status: StatusLike) -> Optional[ClaimStatus]:
        try:
            return ClaimStatus(status)
        except ValueError:
            return None

    def get_available_transitions(self, current_status: StatusLike) -> List[ClaimTransition]:
        """Transitions leaving current_status; empty for terminal or unknown statuses."""
        status = self._coerce(current_status)
        if status is None:
            return []
        return list(self.TRANSITIONS.get(status, []))

    def get_transition(
        self,
        current_status: StatusLike,
        target_status: StatusLike
    ) -> Optional[ClaimTransition]:
        target = self._coerce(target_status)
        if target is None:
            return None
        return next(
            (t for t in self.get_available_transitions(current_status) if t.to_status == target),
            None
        )

    def can_transition(self, current_status: StatusLike, target_status: StatusLike) -> bool:
        """Check if target_status is reachable in one step."""
        return self.get_transition(current_status, target_status) is not None

    def is_terminal(self, status: StatusLike) -> bool:
        return not self.get_available_transitions(status)

    def validate_transition(
        self,
        current_status: StatusLike,
        target_status: StatusLike,
        notes: Optional[str] = None
    ) -> ClaimTransition:
        """
        Validate a requested status change.

        Args:
            current_status: Status the claim is in now
            target_status: Requested next status
            notes: Free-text notes supplied with the request

        Returns:
            The matching transition

        Raises:
            ValidationError: If the edge does not exist, or it requires notes
                and none were given
        """
        transition = self.get_transition(current_status, target_status)
        if transition is None:
            valid = [t.to_status.value for t in self.get_available_transitions(current_status)]
            raise ValidationError(
                f"Invalid status transition from {_value(current_status)} to {_value(target_status)}. "
                f"Valid transitions: {valid}",
                details={"from": _value(current_status), "to": _value(target_status), "valid": valid}
            )

        if transition.requires_notes and (notes is None or not notes.strip()):
            raise ValidationError(
                "notes required for this transition",
                details={"from": transition.from_status.value, "to": transition.to_status.value}
            )

        return transition


def _value(status: StatusLike) -> str:
    return status.value if isinstance(status, ClaimStatus) else str(status)
