from __future__ import annotations

import json

import pytest

from request_client.client import RequestClient
from request_client.config import BasicAuth, BearerAuth, ClientConfig, OAuth2Config, OAuth2User
from request_client.errors import ApplicationError, TokenTypeError
from request_client.oauth2 import TokenManager, TokenState, build_token_client_config

JSON = {"Content-Type": "application/json"}


def token_body(token="t1", **extra) -> str:
    return json.dumps({"access_token": token, "token_type": "Bearer", **extra})


def make_manager(transport, clock, *, user=None) -> TokenManager:
    oauth2 = OAuth2Config(
        url="https://auth.example.com/oauth",
        auth=BasicAuth("app", "app-secret"),
        user=user,
    )
    parent = ClientConfig(url="https://api.example.com", oauth2=oauth2)
    token_client = RequestClient(build_token_client_config(parent, oauth2), transport=transport)
    return TokenManager(oauth2, token_client, clock=clock)


@pytest.mark.asyncio
async def test_acquires_with_client_credentials(transport, clock) -> None:
    manager = make_manager(transport, clock)
    transport.add(200, token_body(expires_in=60), JSON)
    auth = await manager.ensure_token()
    assert auth == BearerAuth("t1")
    request = transport.descriptors[0]
    assert request.method == "POST"
    assert request.url == "https://auth.example.com/oauth/token"
    assert request.body_slot == "form"
    assert request.body == {"grant_type": "client_credentials"}
    assert request.auth == BasicAuth("app", "app-secret")
    assert manager.state == TokenState("t1", "Bearer", None, 1060.0)


@pytest.mark.asyncio
async def test_acquires_with_password_grant(transport, clock) -> None:
    manager = make_manager(transport, clock, user=OAuth2User("ann", "pw"))
    transport.add(200, token_body(), JSON)
    await manager.ensure_token()
    assert transport.descriptors[0].body == {
        "grant_type": "password",
        "username": "ann",
        "password": "pw",
    }


@pytest.mark.asyncio
async def test_valid_token_is_reused(transport, clock) -> None:
    manager = make_manager(transport, clock)
    transport.add(200, token_body(expires_in=60), JSON)
    await manager.ensure_token()
    clock.now += 59
    assert await manager.ensure_token() == BearerAuth("t1")
    assert len(transport.descriptors) == 1


@pytest.mark.asyncio
async def test_token_without_expiry_never_expires_by_time(transport, clock) -> None:
    manager = make_manager(transport, clock)
    transport.add(200, token_body(), JSON)
    await manager.ensure_token()
    clock.now += 10**9
    await manager.ensure_token()
    assert len(transport.descriptors) == 1
    assert manager.state.expires_at is None


@pytest.mark.asyncio
async def test_expired_token_with_refresh_token_is_refreshed(transport, clock) -> None:
    manager = make_manager(transport, clock)
    transport.add(200, token_body(expires_in=60, refresh_token="r1"), JSON)
    transport.add(200, token_body("t2", expires_in=60, refresh_token="r2"), JSON)
    await manager.ensure_token()
    clock.now += 61
    assert await manager.ensure_token() == BearerAuth("t2")
    assert transport.descriptors[1].body == {"grant_type": "refresh_token", "refresh_token": "r1"}
    assert manager.state.refresh_token == "r2"


@pytest.mark.asyncio
async def test_expired_token_without_refresh_token_is_reacquired(transport, clock) -> None:
    manager = make_manager(transport, clock)
    transport.add(200, token_body(expires_in=60), JSON)
    transport.add(200, token_body("t2"), JSON)
    await manager.ensure_token()
    clock.now += 61
    assert await manager.ensure_token() == BearerAuth("t2")
    assert transport.descriptors[1].body == {"grant_type": "client_credentials"}


@pytest.mark.asyncio
async def test_force_refresh_ignores_expiry(transport, clock) -> None:
    manager = make_manager(transport, clock)
    transport.add(200, token_body(refresh_token="r1"), JSON)
    transport.add(200, token_body("t2"), JSON)
    await manager.ensure_token()
    assert await manager.ensure_token(force_refresh=True) == BearerAuth("t2")
    assert transport.descriptors[1].body["grant_type"] == "refresh_token"
    # Replaced wholesale: the new response carried no refresh token.
    assert manager.state.refresh_token is None


@pytest.mark.asyncio
async def test_token_type_is_case_insensitive(transport, clock) -> None:
    manager = make_manager(transport, clock)
    transport.add(200, json.dumps({"access_token": "t1", "token_type": "BEARER"}), JSON)
    assert await manager.ensure_token() == BearerAuth("t1")


@pytest.mark.asyncio
async def test_unknown_token_type_raises(transport, clock) -> None:
    manager = make_manager(transport, clock)
    transport.add(200, json.dumps({"access_token": "t1", "token_type": "mac"}), JSON)
    with pytest.raises(TokenTypeError) as excinfo:
        await manager.ensure_token()
    assert excinfo.value.token_type == "mac"
    assert manager.state is None


@pytest.mark.asyncio
async def test_response_without_access_token_raises(transport, clock) -> None:
    manager = make_manager(transport, clock)
    transport.add(200, json.dumps({"error": "nope"}), JSON)
    with pytest.raises(ApplicationError) as excinfo:
        await manager.ensure_token()
    assert excinfo.value.body == {"error": "nope"}


@pytest.mark.asyncio
async def test_token_endpoint_error_propagates(transport, clock) -> None:
    manager = make_manager(transport, clock)
    transport.add(400, json.dumps({"error": "invalid_client"}), JSON)
    with pytest.raises(ApplicationError) as excinfo:
        await manager.ensure_token()
    assert excinfo.value.status_code == 400


@pytest.mark.asyncio
async def test_token_body_without_json_content_type_is_parsed(transport, clock) -> None:
    manager = make_manager(transport, clock)
    transport.add(200, token_body(), {"Content-Type": "text/plain"})
    assert await manager.ensure_token() == BearerAuth("t1")
