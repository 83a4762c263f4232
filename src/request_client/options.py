"""
Request options builder.

Purpose:
- Merge per-call options, client defaults, and OAuth2 auth into one
  self-contained RequestDescriptor the transport can execute.

Logic flow:
1) Resolve the URI (uri.py) with the effective encode_query flag.
2) Prefix the client URL unless the resolved URI is absolute.
3) Merge headers (call wins), pick the body slot from Content-Type;
   a multipart body must be a mapping.
4) Pick timeout/auth/full_response (call ?? client).
5) If OAuth2 is configured, await a bearer token; it always wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Mapping

from .config import Auth, ClientConfig
from .uri import UriLike, is_absolute, resolve_uri

if TYPE_CHECKING:
    from .oauth2 import TokenManager

_SLOT_BY_CONTENT_TYPE = {
    "multipart/form-data": "multipart",
    "application/x-www-form-urlencoded": "form",
}


@dataclass(frozen=True)
class RequestOptions:
    """
    Per-call overrides; None means "use the client default".
    """

    headers: Mapping[str, str] | None = None
    timeout: float | None = None
    auth: Auth | None = None
    encode_query: bool | None = None
    full_response: bool | None = None
    cache_ttl: float | None = None


@dataclass(frozen=True)
class RequestDescriptor:
    """
    Everything the transport needs for one exchange.

    body_slot is "json", "form" or "multipart". Only auth may change after
    construction, via with_auth() during the re-authentication retry.
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    body_slot: str = "json"
    timeout: float | None = None
    auth: Auth | None = None
    full_response: bool = False

    def with_auth(self, auth: Auth) -> "RequestDescriptor":
        return replace(self, auth=auth)


def effective_encode_query(config: ClientConfig, options: RequestOptions) -> bool:
    return config.encode_query if options.encode_query is None else options.encode_query


def _body_slot(config: ClientConfig, headers: Mapping[str, str]) -> str:
    for key, value in headers.items():
        if key.lower() == "content-type":
            media_type = value.split(";", 1)[0].strip().lower()
            if media_type in _SLOT_BY_CONTENT_TYPE:
                return _SLOT_BY_CONTENT_TYPE[media_type]
    return config.content_type


class RequestOptionsBuilder:
    """
    Builds RequestDescriptor objects for one client; never mutates config.
    """

    def __init__(self, config: ClientConfig, token_manager: TokenManager | None = None) -> None:
        self._config = config
        self._token_manager = token_manager

    def resolve_url(self, uri: UriLike, options: RequestOptions) -> str:
        resolved = resolve_uri(uri, encode_query=effective_encode_query(self._config, options))
        return resolved if is_absolute(resolved) else self._config.url + resolved

    async def build(
        self,
        method: str,
        uri: UriLike,
        body: Any = None,
        options: RequestOptions | None = None,
    ) -> RequestDescriptor:
        options = options or RequestOptions()
        config = self._config

        headers = {**config.headers, **(options.headers or {})}
        body_slot = _body_slot(config, headers)
        if body is not None and body_slot == "multipart" and not isinstance(body, Mapping):
            raise ValueError(
                f"Multipart body must be a mapping of field names to values, got {type(body).__name__}."
            )
        auth = options.auth if options.auth is not None else config.auth
        if self._token_manager is not None:
            auth = await self._token_manager.ensure_token()

        return RequestDescriptor(
            method=method.upper(),
            url=self.resolve_url(uri, options),
            headers=headers,
            body=body,
            body_slot=body_slot,
            timeout=options.timeout if options.timeout is not None else config.timeout,
            auth=auth,
            full_response=(
                config.full_response if options.full_response is None else options.full_response
            ),
        )
