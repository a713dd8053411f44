# Workflow module - approval rules and notification templates
from .approvals import APPROVAL_LIMITS, SUPER_ADMIN, ApprovalEngine, approval_engine
from .notifications import TEMPLATES, format_naira, generate_notification

__all__ = [
    "APPROVAL_LIMITS",
    "SUPER_ADMIN",
    "ApprovalEngine",
    "approval_engine",
    "TEMPLATES",
    "format_naira",
    "generate_notification",
]
