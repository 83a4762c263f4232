from __future__ import annotations

import pytest

from request_client.client import RequestClient
from request_client.config import BasicAuth, BearerAuth, ClientConfig
from request_client.options import RequestOptions, RequestOptionsBuilder
from request_client.uri import UriSpec


class StaticTokenManager:
    def __init__(self, token="issued"):
        self.token = token
        self.calls = 0

    async def ensure_token(self, force_refresh=False):
        self.calls += 1
        return BearerAuth(self.token)


@pytest.mark.asyncio
async def test_build_merges_client_and_call_settings() -> None:
    cfg = ClientConfig(
        url="https://api.example.com/v1",
        timeout=10,
        headers={"X-App": "demo", "Accept": "application/json"},
        auth=BasicAuth("ann", "pw"),
    )
    builder = RequestOptionsBuilder(cfg)
    options = RequestOptions(headers={"Accept": "text/plain"}, timeout=2.5)
    descriptor = await builder.build("post", UriSpec("orders/{id}", params={"id": 9}), {"a": 1}, options)
    assert descriptor.method == "POST"
    assert descriptor.url == "https://api.example.com/v1/orders/9"
    assert descriptor.headers == {"X-App": "demo", "Accept": "text/plain"}
    assert descriptor.body == {"a": 1}
    assert descriptor.body_slot == "json"
    assert descriptor.timeout == 2.5
    assert descriptor.auth == BasicAuth("ann", "pw")
    assert descriptor.full_response is False
    assert cfg.headers == {"X-App": "demo", "Accept": "application/json"}


@pytest.mark.asyncio
async def test_absolute_uri_skips_base_url() -> None:
    builder = RequestOptionsBuilder(ClientConfig(url="https://api.example.com"))
    descriptor = await builder.build("GET", "https://other.example.com/x")
    assert descriptor.url == "https://other.example.com/x"
    assert descriptor.timeout is None
    assert descriptor.auth is None


@pytest.mark.asyncio
async def test_call_encode_query_overrides_client() -> None:
    builder = RequestOptionsBuilder(ClientConfig(url="http://x", encode_query=False))
    uri = UriSpec("c", query={"name": "a b"})
    plain = await builder.build("GET", uri)
    encoded = await builder.build("GET", uri, options=RequestOptions(encode_query=True))
    assert plain.url == "http://x/c?name=a b"
    assert encoded.url == "http://x/c?name=a%20b"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("content_type", "header", "slot"),
    [
        ("json", None, "json"),
        ("form", None, "form"),
        ("multipart", None, "multipart"),
        ("json", "multipart/form-data", "multipart"),
        ("json", "application/x-www-form-urlencoded; charset=utf-8", "form"),
        ("form", "application/json", "form"),
    ],
)
async def test_body_slot_follows_content_type(content_type, header, slot) -> None:
    builder = RequestOptionsBuilder(ClientConfig(url="http://x", content_type=content_type))
    headers = {"content-type": header} if header else None
    descriptor = await builder.build("POST", "y", {"k": "v"}, RequestOptions(headers=headers))
    assert descriptor.body_slot == slot


@pytest.mark.asyncio
async def test_oauth2_token_wins_over_static_auth() -> None:
    tokens = StaticTokenManager()
    builder = RequestOptionsBuilder(ClientConfig(url="http://x", auth=BasicAuth("a", "b")), tokens)
    descriptor = await builder.build("GET", "y", options=RequestOptions(auth=BearerAuth("call")))
    assert descriptor.auth == BearerAuth("issued")
    assert tokens.calls == 1


@pytest.mark.asyncio
async def test_full_response_default_and_override() -> None:
    builder = RequestOptionsBuilder(ClientConfig(url="http://x", full_response=True))
    assert (await builder.build("GET", "y")).full_response is True
    overridden = await builder.build("GET", "y", options=RequestOptions(full_response=False))
    assert overridden.full_response is False


def test_with_auth_returns_copy() -> None:
    from request_client.options import RequestDescriptor

    original = RequestDescriptor(method="GET", url="http://x/y", auth=BearerAuth("old"))
    updated = original.with_auth(BearerAuth("new"))
    assert original.auth == BearerAuth("old")
    assert updated.auth == BearerAuth("new")
    assert updated.url == original.url


@pytest.mark.asyncio
async def test_multipart_body_must_be_a_mapping(transport) -> None:
    builder = RequestOptionsBuilder(ClientConfig(url="http://x", content_type="multipart"))
    with pytest.raises(ValueError, match="Multipart body must be a mapping"):
        await builder.build("POST", "y", "raw text")
    form = RequestOptionsBuilder(ClientConfig(url="http://x", content_type="form"))
    assert (await form.build("POST", "y", "a=1&b=2")).body == "a=1&b=2"

    client = RequestClient(ClientConfig(url="http://x", content_type="multipart"), transport=transport)
    with pytest.raises(ValueError):
        await client.post("y", "raw text")
    assert transport.descriptors == []
