"""
Tests for authentication middleware.

Tests:
- Token validation from Authorization header
- Anonymous pass-through
- Revoked, expired and malformed tokens
- Revocation list outages
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from core.middleware.authentication import AuthenticationMiddleware, get_current_principal
from core.security import create_access_token
from core.config import settings


@pytest.fixture
def revocation_list():
    revocation_list = AsyncMock()
    revocation_list.is_revoked.return_value = False
    return revocation_list


@pytest.fixture
def app(revocation_list):
    app = FastAPI()

    @app.get("/whoami")
    async def whoami(request: Request):
        principal = get_current_principal(request)
        return {"principal": principal.to_dict() if principal else None}

    app.add_middleware(
        AuthenticationMiddleware,
        jwt_secret=settings.jwt_secret_key,
        jwt_algorithm=settings.jwt_algorithm,
        revocation_list=revocation_list,
    )
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestAuthentication:
    """Test principal resolution."""

    def test_valid_token_sets_principal(self, client):
        token = create_access_token(user_id=5, role="client", name="alice")

        response = client.get("/whoami", headers=bearer(token))

        assert response.status_code == 200
        assert response.json()["principal"] == {"id": 5, "role": "client", "name": "alice"}

    def test_no_token_passes_through(self, client, revocation_list):
        response = client.get("/whoami")

        assert response.status_code == 200
        assert response.json()["principal"] is None
        revocation_list.is_revoked.assert_not_called()

    def test_non_bearer_scheme_is_ignored(self, client):
        response = client.get("/whoami", headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert response.json()["principal"] is None

    def test_expired_token(self, client):
        token = create_access_token(user_id=5, role="client", expires_delta=timedelta(seconds=-5))

        response = client.get("/whoami", headers=bearer(token))

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or expired session"}

    def test_garbage_token(self, client):
        response = client.get("/whoami", headers=bearer("not.a.jwt"))
        assert response.status_code == 401

    def test_token_signed_with_other_secret(self, client):
        token = create_access_token(user_id=5, role="client", secret_key="someone-else")
        response = client.get("/whoami", headers=bearer(token))
        assert response.status_code == 401

    def test_token_with_unknown_role(self, client):
        token = create_access_token(user_id=5, role="superuser")
        response = client.get("/whoami", headers=bearer(token))
        assert response.status_code == 401

    def test_revoked_token(self, client, revocation_list):
        revocation_list.is_revoked.return_value = True
        token = create_access_token(user_id=5, role="client")

        response = client.get("/whoami", headers=bearer(token))

        assert response.status_code == 403
        assert response.json() == {"error": "Session invalid, please login again"}
        revocation_list.is_revoked.assert_awaited_once_with(token)

    def test_revocation_list_outage(self, client, revocation_list):
        revocation_list.is_revoked.side_effect = RedisConnectionError("down")
        token = create_access_token(user_id=5, role="client")

        response = client.get("/whoami", headers=bearer(token))

        assert response.status_code == 500
        assert "retry" in response.json()["error"]
