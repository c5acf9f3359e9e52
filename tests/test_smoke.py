"""
tests.test_smoke

End-to-end checks through the HTTP API with in-process fakes for the planner
and assessors.

Responsibilities:
- Ensure the FastAPI app boots (lifespan) and probes respond.
- Drive submit -> verify -> poll -> report, plus cancel and error mapping.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from compliance_orchestrator.api.app import create_app
from compliance_orchestrator.orchestrator.planner import StaticPlanner
from compliance_orchestrator.settings import Settings
from tests.fakes import FakePlanner, scored_assessors

SUBMISSION = {
    "business_name": "Acme Dental",
    "business_type": "Healthcare",
    "use_case": "Appointment reminders for existing patients",
    "opt_in_method": "webform",
    "messages": ["Acme Dental: appointment tomorrow 3pm. Reply STOP to opt out."],
}


@asynccontextmanager
async def _client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    # httpx ASGITransport does not run lifespan; drive it explicitly.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest_asyncio.fixture
async def client(settings: Settings) -> AsyncIterator[httpx.AsyncClient]:
    app = create_app(
        settings=settings,
        planner=StaticPlanner(),
        assessors=scored_assessors(use_case=80.0, messages=90.0),
    )
    async with _client(app) as c:
        yield c


async def _poll_until_terminal(client: httpx.AsyncClient, verification_id: str) -> dict:
    for _ in range(400):
        r = await client.get(f"/v1/verifications/{verification_id}")
        assert r.status_code == 200
        body = r.json()
        if body["status"] in ("COMPLETED", "FAILED"):
            return body
        await asyncio.sleep(0.01)
    raise AssertionError("verification did not finish")


@pytest.mark.asyncio
async def test_health_endpoints(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert "x-request-id" in r.headers

    r = await client.get("/readyz")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_submit_verify_and_fetch_report(client: httpx.AsyncClient) -> None:
    r = await client.post("/v1/submissions", json=SUBMISSION)
    assert r.status_code == 201
    submission = r.json()
    assert submission["status"] == "SUBMITTED"
    assert submission["message_count"] == 1

    r = await client.post(f"/v1/submissions/{submission['id']}/verify")
    assert r.status_code == 202
    started = r.json()
    assert started["status"] == "PENDING"
    assert started["current_step"] == "planning"
    assert started["error"] is None

    done = await _poll_until_terminal(client, started["id"])
    assert done["status"] == "COMPLETED"
    assert done["progress"] == 100
    assert done["completed_steps"] == ["use_case", "messages"]

    r = await client.get(f"/v1/submissions/{submission['id']}")
    assert r.json()["status"] == "VERIFIED"
    assert r.json()["compliance_score"] == pytest.approx(85.0)

    r = await client.get(f"/v1/submissions/{submission['id']}/report")
    assert r.status_code == 200
    report = r.json()
    assert report["overall_score"] == pytest.approx(85.0)
    assert report["approval_likelihood"] == "HIGH"
    assert report["component_scores"]["images"] is None
    assert report["verification_id"] == started["id"]

    # Already VERIFIED: a second start is a state conflict.
    r = await client.post(f"/v1/submissions/{submission['id']}/verify")
    assert r.status_code == 409
    assert r.json()["code"] == "invalid_state"

    r = await client.delete(f"/v1/verifications/{started['id']}")
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_cancel_through_api(settings: Settings) -> None:
    gate = asyncio.Event()
    app = create_app(settings=settings, planner=FakePlanner(gate=gate), assessors=scored_assessors())
    async with _client(app) as client:
        submission = (await client.post("/v1/submissions", json=SUBMISSION)).json()
        started = (await client.post(f"/v1/submissions/{submission['id']}/verify")).json()

        r = await client.delete(f"/v1/verifications/{started['id']}")
        assert r.status_code == 204
        gate.set()

        body = (await client.get(f"/v1/verifications/{started['id']}")).json()
        assert body["status"] == "FAILED"
        assert body["error"]["code"] == "cancelled_by_user"
        assert body["error"]["message"] == "Verification was cancelled by the user"

        r = await client.get(f"/v1/submissions/{submission['id']}")
        assert r.json()["status"] == "SUBMITTED"

        r = await client.get(f"/v1/submissions/{submission['id']}/report")
        assert r.status_code == 404


@pytest.mark.asyncio
async def test_unknown_ids_and_invalid_payloads(client: httpx.AsyncClient) -> None:
    missing = "00000000-0000-0000-0000-000000000000"

    r = await client.get(f"/v1/verifications/{missing}")
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"

    r = await client.post(f"/v1/submissions/{missing}/verify")
    assert r.status_code == 404

    r = await client.get(f"/v1/submissions/{missing}")
    assert r.status_code == 404

    r = await client.post("/v1/submissions", json={"business_name": "Acme"})
    assert r.status_code == 422
