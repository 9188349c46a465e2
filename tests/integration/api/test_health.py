"""Health probes and error body shape."""

import pytest
from httpx import AsyncClient


pytestmark = pytest.mark.integration


async def test_liveness(client: AsyncClient):
    response = await client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


async def test_readiness_reports_remote(client: AsyncClient):
    response = await client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ready",
        "checks": {"database": "ok", "remote": "memory"},
    }


async def test_request_id_echoed(client: AsyncClient):
    response = await client.get("/health/live", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


async def test_problem_details_shape(client: AsyncClient):
    response = await client.get("/api/v1/profile", headers={"X-Request-ID": "req-1"})

    assert response.status_code == 401
    body = response.json()
    assert body["type"].endswith("/errors/not_logged_in")
    assert body["title"] == "Not Logged In"
    assert body["instance"] == "/api/v1/profile"
    assert body["trace_id"] == "req-1"


async def test_login_validation_errors(client: AsyncClient):
    response = await client.post("/api/v1/auth/login", json={"name": " ", "mobile": "12"})

    assert response.status_code == 422
    fields = {e["field"] for e in response.json()["errors"]}
    assert fields == {"name", "mobile"}
