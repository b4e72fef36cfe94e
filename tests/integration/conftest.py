"""Fixtures for driving the full application over ASGI."""

import pytest
from httpx import ASGITransport, AsyncClient

from api.dependencies import get_gateway
from api.main import app


@pytest.fixture
async def api(gateway, revocations):
    """HTTP client against the app, wired to the per-test database."""
    app.dependency_overrides[get_gateway] = lambda: gateway
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def job_payload():
    def _payload(client_id, **overrides):
        payload = {
            "client_id": client_id,
            "title": "Mount a TV",
            "description": "65 inch TV on drywall",
            "location": "Ottawa",
            "urgency": "medium",
            "date": "2026-11-20T15:00:00Z",
            "min_budget": 80,
            "max_budget": "150",
            "notify": False,
            "images": ["https://cdn.test/wall.jpg"],
        }
        payload.update(overrides)
        return payload

    return _payload
