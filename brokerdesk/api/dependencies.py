"""
Service wiring for the API.

Everything is built once per process and handed to the routes through
FastAPI dependencies, so tests can swap them with app.dependency_overrides.
"""
from functools import lru_cache
from typing import Optional

from brokerdesk.config import Settings, get_settings
from brokerdesk.monitors.status_monitor import StatusMonitor
from brokerdesk.services.audit import AuditLogger
from brokerdesk.services.claims import ClaimWorkflowService
from brokerdesk.services.notifier import LoggingDispatcher
from brokerdesk.services.store import InMemoryStore
from brokerdesk.services.workflows import WorkflowService
from brokerdesk.state_machine.machine import ClaimStateMachine
from brokerdesk.workflow.approvals import ApprovalEngine


class ServiceContainer:
    """The collaborators and services of one running process."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.store = InMemoryStore()  # Would be the hosted database in production
        self.audit = AuditLogger(self.store)
        self.dispatcher = LoggingDispatcher(self.store)
        self.state_machine = ClaimStateMachine()
        self.engine = ApprovalEngine()
        self.monitor = StatusMonitor(self.dispatcher, contacts=self.settings.adjuster_contacts)
        self.claims = ClaimWorkflowService(
            self.store,
            audit=self.audit,
            state_machine=self.state_machine,
            monitor=self.monitor,
            dispatcher=self.dispatcher,
            engine=self.engine,
            settings=self.settings
        )
        self.workflows = WorkflowService(
            self.store,
            audit=self.audit,
            engine=self.engine,
            dispatcher=self.dispatcher,
            approver_contacts=self.settings.approver_contacts,
            settings=self.settings
        )


@lru_cache
def get_container() -> ServiceContainer:
    return ServiceContainer()


def get_claim_service() -> ClaimWorkflowService:
    return get_container().claims


def get_workflow_service() -> WorkflowService:
    return get_container().workflows


def get_approval_engine() -> ApprovalEngine:
    return get_container().engine


def get_state_machine() -> ClaimStateMachine:
    return get_container().state_machine
