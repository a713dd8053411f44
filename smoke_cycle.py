"""
Full Cycle Smoke Script for the BrokerDesk Service

Walks a claim and an approval workflow through a running server:
1. Claim is registered
2. Claim moves registered -> investigating -> assessed
3. A rejection without notes is refused
4. A claims approval workflow is started and its steps decided
5. Claim is approved, settled and closed
6. Audit trail and insights are fetched

Run with: python smoke_cycle.py

Prerequisites:
- Server running: uvicorn brokerdesk.main:app --reload --port 8000
"""
import requests

# Configuration
API_URL = "http://localhost:8000"


# Colors for terminal output
class Colors:
    GREEN = '\033[92m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    BOLD = '\033[1m'
    END = '\033[0m'


def print_step(step_num: int, message: str):
    print(f"\n{Colors.BOLD}{Colors.BLUE}[Step {step_num}]{Colors.END} {message}")


def print_success(message: str):
    print(f"  {Colors.GREEN}✓ {message}{Colors.END}")


def print_error(message: str):
    print(f"  {Colors.RED}✗ {message}{Colors.END}")


def print_info(message: str):
    print(f"  → {message}")


def check_health() -> bool:
    print_step(0, "Checking API Connection")
    try:
        response = requests.get(f"{API_URL}/health", timeout=5)
    except requests.exceptions.ConnectionError:
        print_error("Cannot connect to API. Is the server running?")
        print_info("Expected: uvicorn brokerdesk.main:app --reload --port 8000")
        return False
    if response.status_code != 200:
        print_error(f"API returned status {response.status_code}")
        return False
    print_success("API is healthy and responding")
    return True


def register_claim():
    print_step(1, "Registering Claim")
    response = requests.post(f"{API_URL}/claims/", json={
        "client_name": "Adaeze Okafor",
        "client_email": "adaeze@example.com",
        "policy_number": "POL-MTR-0042",
        "claim_type": "motor",
        "incident_date": "2026-10-01",
        "description": "Rear-ended at a junction on Allen Avenue",
        "estimated_loss": 3_500_000,
    }, timeout=10)

    if response.status_code != 201:
        print_error(f"Failed to register claim: {response.text}")
        return None
    claim = response.json()["claim"]
    print_success(f"Claim {claim['claim_number']} registered ({claim['id'][:8]}...)")
    return claim["id"]


def move(claim_id: str, new_status: str, notes: str | None = None) -> requests.Response:
    return requests.post(
        f"{API_URL}/claims/{claim_id}/transition",
        json={"new_status": new_status, "notes": notes, "actor": "smoke-script"},
        timeout=10
    )


def walk_to_assessed(claim_id: str) -> bool:
    print_step(2, "Investigating and Assessing")
    for status in ("investigating", "assessed"):
        response = move(claim_id, status)
        if response.status_code != 200:
            print_error(f"Transition to {status} failed: {response.text}")
            return False
        print_success(f"Claim now {response.json()['claim']['status']}")
    return True


def check_rejection_needs_notes(claim_id: str) -> bool:
    print_step(3, "Rejecting Without Notes (should be refused)")
    response = move(claim_id, "rejected", notes="  ")
    if response.status_code == 400:
        print_success(f"Refused: {response.json()['detail']}")
        return True
    print_error(f"Expected 400, got {response.status_code}")
    return False


def run_approval_workflow(claim_id: str) -> bool:
    print_step(4, "Claims Approval Workflow")
    response = requests.post(f"{API_URL}/workflows/", json={
        "workflow_type": "claims",
        "reference_type": "claim",
        "reference_id": claim_id,
        "amount": 3_500_000,
        "initiator_role": "Agent",
        "actor": "smoke-script",
    }, timeout=10)
    if response.status_code != 201:
        print_error(f"Failed to start workflow: {response.text}")
        return False

    workflow = response.json()
    print_info(f"Steps: {[s['role_required'] for s in workflow['steps']]}")
    for step in workflow["steps"]:
        response = requests.post(
            f"{API_URL}/workflows/{workflow['id']}/steps/{step['id']}",
            json={"action": "approve", "actor": f"{step['role_required']}-user"},
            timeout=10
        )
        if response.status_code != 200:
            print_error(f"Step {step['name']} failed: {response.text}")
            return False
        print_success(f"{step['name']} approved; workflow {response.json()['status']}")
    return True


def settle(claim_id: str) -> bool:
    print_step(5, "Approving, Settling and Closing")
    for status in ("approved", "settled", "closed"):
        response = move(claim_id, status)
        if response.status_code != 200:
            print_error(f"Transition to {status} failed: {response.text}")
            return False
        print_success(f"Claim now {status}")
    return True


def show_audit(claim_id: str):
    print_step(6, "Audit Trail and Insights")
    trail = requests.get(f"{API_URL}/claims/{claim_id}/audit", timeout=10).json()
    print_info(f"Audit records: {len(trail)} ({', '.join(r['action'] for r in trail)})")
    insights = requests.get(f"{API_URL}/claims/dashboard/insights", timeout=10).json()
    print_info(f"Pending approval: {len(insights['pending_approval'])}")


def run_full_cycle():
    print(f"\n{'='*60}")
    print(f"{Colors.BOLD}  FULL CYCLE SMOKE - BrokerDesk{Colors.END}")
    print(f"{'='*60}")
    print(f"\nAPI URL: {API_URL}")

    if not check_health():
        return

    claim_id = register_claim()
    if not claim_id:
        return

    if not (
        walk_to_assessed(claim_id)
        and check_rejection_needs_notes(claim_id)
        and run_approval_workflow(claim_id)
        and settle(claim_id)
    ):
        return

    show_audit(claim_id)

    print(f"\n{'='*60}")
    print(f"{Colors.BOLD}{Colors.GREEN}  ✓ FULL CYCLE COMPLETE{Colors.END}")
    print(f"{'='*60}")
    print(f"\nAPI docs: {API_URL}/docs")


if __name__ == "__main__":
    run_full_cycle()
