# tests/test_pool_api.py

import pytest
from httpx import ASGITransport, AsyncClient

from mutualpool_node.config import load_config
from mutualpool_node.pool_api import create_app
from mutualpool_node.pool_runtime.ledger import PoolLedger

ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"


def _as(who):
    return {"X-Caller-Id": who}


@pytest.fixture
def pool_ledger():
    return PoolLedger(ADMIN)


@pytest.fixture
def app(tmp_path, pool_ledger):
    return create_app(load_config(str(tmp_path)), ledger=pool_ledger)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.mark.asyncio
async def test_full_pool_flow(client, pool_ledger):
    r = await client.post("/pool/join", headers=_as("user1"))
    assert r.status_code == 200
    assert r.json() == {"ok": True}

    r = await client.post(
        "/pool/policies",
        headers=_as("user1"),
        json={"coverage_amount": 1_000_000, "premium": 50_000, "duration": 144},
    )
    assert r.status_code == 200
    assert r.json() == {"ok": True, "policy_id": 0}

    r = await client.post(
        "/pool/claims",
        headers=_as("user1"),
        json={"policy_id": 0, "amount": 30_000, "description": "Minor damage"},
    )
    assert r.status_code == 200
    assert r.json()["claim_id"] == 0

    r = await client.post("/pool/claims/0/approve", headers=_as(ADMIN))
    assert r.status_code == 200

    r = await client.get("/pool/claims/0")
    assert r.json()["claim"]["approved"] is True

    r = await client.get("/pool/status")
    body = r.json()
    assert body["pool_balance"] == 20_000
    assert body["participants"] == 1
    assert body["next_policy_id"] == 1
    assert body["next_claim_id"] == 1

    # the API and the ledger share one instance
    assert pool_ledger.pool_balance == 20_000


@pytest.mark.asyncio
async def test_ledger_errors_map_to_http_status(client):
    await client.post("/pool/join", headers=_as("user1"))

    r = await client.post("/pool/join", headers=_as("user1"))
    assert (r.status_code, r.json()["detail"]) == (409, "already_member")

    r = await client.post(
        "/pool/policies",
        headers=_as("user2"),
        json={"coverage_amount": 10, "premium": 1, "duration": 1},
    )
    assert (r.status_code, r.json()["detail"]) == (403, "unauthorized")

    r = await client.post(
        "/pool/policies",
        headers=_as("user1"),
        json={"coverage_amount": 10, "premium": 1_000_001, "duration": 1},
    )
    assert (r.status_code, r.json()["detail"]) == (409, "insufficient_funds")

    await client.post(
        "/pool/policies",
        headers=_as("user1"),
        json={"coverage_amount": 100, "premium": 50, "duration": 1},
    )
    r = await client.post(
        "/pool/claims",
        headers=_as("user1"),
        json={"policy_id": 0, "amount": 101, "description": "too much"},
    )
    assert (r.status_code, r.json()["detail"]) == (422, "invalid_policy")

    await client.post(
        "/pool/claims",
        headers=_as("user1"),
        json={"policy_id": 0, "amount": 60, "description": "more than the pool"},
    )
    r = await client.post("/pool/claims/0/approve", headers=_as("user1"))
    assert (r.status_code, r.json()["detail"]) == (403, "owner_only")

    r = await client.post("/pool/claims/0/approve", headers=_as(ADMIN))
    assert (r.status_code, r.json()["detail"]) == (409, "insufficient_funds")

    r = await client.post("/pool/claims/9/approve", headers=_as(ADMIN))
    assert (r.status_code, r.json()["detail"]) == (404, "not_found")


@pytest.mark.asyncio
async def test_second_approval_conflicts(client):
    await client.post("/pool/join", headers=_as("user1"))
    await client.post(
        "/pool/policies",
        headers=_as("user1"),
        json={"coverage_amount": 100, "premium": 50, "duration": 1},
    )
    await client.post(
        "/pool/claims",
        headers=_as("user1"),
        json={"policy_id": 0, "amount": 10, "description": "dent"},
    )

    assert (await client.post("/pool/claims/0/approve", headers=_as(ADMIN))).status_code == 200
    r = await client.post("/pool/claims/0/approve", headers=_as(ADMIN))
    assert (r.status_code, r.json()["detail"]) == (409, "already_approved")


@pytest.mark.asyncio
async def test_mutations_require_caller_header(client):
    r = await client.post("/pool/join")
    assert (r.status_code, r.json()["detail"]) == (401, "auth_required")

    r = await client.post("/pool/join", headers={"X-Other-Id": "user1"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_negative_amounts_rejected_by_request_model(client):
    await client.post("/pool/join", headers=_as("user1"))
    r = await client.post(
        "/pool/policies",
        headers=_as("user1"),
        json={"coverage_amount": 10, "premium": -1, "duration": 1},
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_reads_and_events(client):
    r = await client.get("/pool/policies/0")
    assert (r.status_code, r.json()["detail"]) == (404, "not_found")
    r = await client.get("/pool/claims/0")
    assert r.status_code == 404

    await client.post("/pool/join", headers=_as("user1"))
    await client.post(
        "/pool/policies",
        headers=_as("user1"),
        json={"coverage_amount": 100, "premium": 5, "duration": 30},
    )

    r = await client.get("/pool/policies/0")
    assert r.json()["policy"] == {
        "id": 0,
        "owner": "user1",
        "coverage_amount": 100,
        "premium": 5,
        "start_marker": 0,
        "end_marker": 30,
        "active": True,
    }

    r = await client.get("/pool/events", params={"since": 1})
    events = r.json()["events"]
    assert [e["type"] for e in events] == ["policy_created"]


@pytest.mark.asyncio
async def test_health_and_missing_ledger(app, client):
    assert (await client.get("/health")).json() == {"ok": True}

    app.state.ledger = None
    r = await client.get("/pool/status")
    assert (r.status_code, r.json()["detail"]) == (503, "pool_ledger_unavailable")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"coverage_amount": 10, "premium": True, "duration": 1},
        {"coverage_amount": True, "premium": True, "duration": True},
        {"coverage_amount": 10, "premium": "5", "duration": 1},
    ],
)
async def test_policy_amounts_must_be_real_integers(client, pool_ledger, body):
    """JSON booleans and numeric strings are not coerced into units."""
    await client.post("/pool/join", headers=_as("user1"))

    r = await client.post("/pool/policies", headers=_as("user1"), json=body)
    assert r.status_code == 422
    assert pool_ledger.list_policies() == []
    assert pool_ledger.pool_balance == 0


@pytest.mark.asyncio
async def test_claim_amount_must_be_real_integer(client, pool_ledger):
    await client.post("/pool/join", headers=_as("user1"))
    await client.post(
        "/pool/policies",
        headers=_as("user1"),
        json={"coverage_amount": 100, "premium": 5, "duration": 1},
    )

    r = await client.post(
        "/pool/claims",
        headers=_as("user1"),
        json={"policy_id": 0, "amount": True, "description": "bool"},
    )
    assert r.status_code == 422
    assert pool_ledger.list_claims() == []


@pytest.mark.asyncio
async def test_negative_policy_id_is_just_an_absent_policy(client):
    await client.post("/pool/join", headers=_as("user1"))

    missing = await client.post(
        "/pool/claims",
        headers=_as("user1"),
        json={"policy_id": 7, "amount": 1, "description": "x"},
    )
    negative = await client.post(
        "/pool/claims",
        headers=_as("user1"),
        json={"policy_id": -1, "amount": 1, "description": "x"},
    )

    assert (missing.status_code, missing.json()["detail"]) == (403, "unauthorized")
    assert (negative.status_code, negative.json()["detail"]) == (403, "unauthorized")
