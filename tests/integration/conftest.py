"""
Integration test fixtures and configuration.

Integration tests drive the FastAPI app end to end: moto for DynamoDB
and SES, the in-memory Zoom API for OAuth and meetings, and the real
OAuth redirect flow instead of seeded tokens.
"""

from typing import Callable

from fastapi.testclient import TestClient
import httpx
import pytest

from recruiting.api.app import create_app


def as_operator(operator_id: str) -> dict[str, str]:
    """Request headers identifying the acting operator."""
    return {"X-Operator-Id": operator_id}


@pytest.fixture
def api(services, operators):
    """TestClient over the fully wired application."""
    with TestClient(create_app(services)) as client:
        yield client


@pytest.fixture
def oauth_connect(api, fake_zoom) -> Callable[[str], None]:
    """
    Connect an operator's Zoom account through initiate + callback.

    Mirrors the browser round-trip: the operator opens the authorization
    URL, the provider redirects back with a code and the original state.
    """
    def _connect(operator_id: str) -> None:
        state = api.get("/zoom/auth/initiate", headers=as_operator(operator_id)).json()["state"]
        code = fake_zoom.add_auth_code(f"code-{operator_id}")

        response = api.get(
            "/zoom/auth/callback",
            params={"code": code, "state": state},
            follow_redirects=False,
        )
        assert httpx.URL(response.headers["location"]).params["auth"] == "success"

    return _connect
