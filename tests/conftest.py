"""Pytest fixtures for the claim workflow and approval tests."""

import pytest
from fastapi.testclient import TestClient

from brokerdesk.api.dependencies import (
    ServiceContainer,
    get_approval_engine,
    get_claim_service,
    get_state_machine,
    get_workflow_service,
)
from brokerdesk.config import Settings
from brokerdesk.core.exceptions import PersistenceError
from brokerdesk.core.models import ClaimCreate
from brokerdesk.services.audit import AuditLogger
from brokerdesk.services.claims import ClaimWorkflowService
from brokerdesk.services.notifier import LoggingDispatcher
from brokerdesk.services.store import AUDIT_LOGS, CLAIMS, InMemoryStore
from brokerdesk.services.workflows import WorkflowService


class FailingUpdateStore(InMemoryStore):
    """Claim updates and deletes fail like a dropped database connection."""

    def update(self, table, record_id, changes):
        if table == CLAIMS:
            raise PersistenceError("connection reset by peer")
        return super().update(table, record_id, changes)

    def delete(self, table, record_id):
        raise PersistenceError("connection reset by peer")


class FailingAuditStore(InMemoryStore):
    """Audit inserts fail; everything else works."""

    def insert(self, table, record):
        if table == AUDIT_LOGS:
            raise RuntimeError("audit_logs is read-only")
        return super().insert(table, record)


@pytest.fixture
def settings():
    return Settings(organization_name="Lagos Brokers", organization_id="org-1")


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def dispatcher(store):
    return LoggingDispatcher(store)


@pytest.fixture
def claim_service(store, dispatcher, settings):
    return ClaimWorkflowService(store, dispatcher=dispatcher, settings=settings)


@pytest.fixture
def workflow_service(store, dispatcher, settings):
    return WorkflowService(
        store,
        dispatcher=dispatcher,
        approver_contacts={
            "Compliance": "compliance@lagosbrokers.ng",
            "Underwriter": "uw@lagosbrokers.ng",
            "SuperAdmin": "admin@lagosbrokers.ng",
        },
        settings=settings
    )


@pytest.fixture
def claim_data():
    return ClaimCreate(
        client_name="Adaeze Okafor",
        client_email="adaeze@example.com",
        policy_number="POL-MTR-0042",
        claim_type="motor",
        description="Rear-ended at a junction",
        estimated_loss=3_500_000,
    )


@pytest.fixture
def new_claim(claim_service, claim_data):
    return claim_service.create_claim(claim_data, actor="agent-7")


@pytest.fixture
def make_audit_failing_service(settings):
    def _make():
        failing = FailingAuditStore()
        return ClaimWorkflowService(failing, audit=AuditLogger(failing), settings=settings)
    return _make


@pytest.fixture
def container():
    return ServiceContainer()


@pytest.fixture
def client(container):
    """TestClient over a fresh service container."""
    from brokerdesk.main import app

    app.dependency_overrides[get_claim_service] = lambda: container.claims
    app.dependency_overrides[get_workflow_service] = lambda: container.workflows
    app.dependency_overrides[get_approval_engine] = lambda: container.engine
    app.dependency_overrides[get_state_machine] = lambda: container.state_machine
    yield TestClient(app)
    app.dependency_overrides.clear()
