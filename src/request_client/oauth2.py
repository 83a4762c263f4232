"""
OAuth2 token lifecycle.

Purpose:
- Acquire an access token on first use (client_credentials or password).
- Refresh it with the refresh_token grant once it is time-expired.
- Give the executor a forced refresh for the 401-challenge retry.

Sources:
- OAuth2Config (config.py): token endpoint URL, client credentials, user.

Logic flow:
1) ensure_token() checks TokenState against the clock.
2) Missing/expired-without-refresh-token -> acquire with the configured grant.
3) Expired-with-refresh-token -> refresh_token grant.
4) The new TokenState replaces the old one wholesale.

Known limitation:
- Concurrent callers that find the token missing or expired each hit the
  token endpoint; there is no single-flight guard and the last response to
  arrive wins. Callers that need coalesced refreshes must serialise calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable
import json
import logging
import time

from .config import BearerAuth, ClientConfig, OAuth2Config
from .outcomes import ApplicationFailure, FullResponse, TokenTypeFailure

if TYPE_CHECKING:
    from .client import RequestClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenState:
    """
    Issued token. expires_at is None when the server sent no expires_in;
    such a token never expires by time.
    """

    access_token: str
    token_type: str | None = None
    refresh_token: str | None = None
    expires_at: float | None = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now > self.expires_at


def build_token_client_config(parent: ClientConfig, oauth2: OAuth2Config) -> ClientConfig:
    """
    Config of the internal client that only talks to the token endpoint.
    """

    return ClientConfig(
        url=oauth2.url,
        timeout=parent.timeout,
        content_type="form",
        auth=oauth2.auth,
        full_response=True,
        name=f"{parent.name} oauth2",
        logger=parent.logger,
        debug_request=parent.debug_request,
        debug_response=parent.debug_response,
    )


class TokenManager:
    """
    Owns TokenState for one client.
    """

    def __init__(
        self,
        oauth2: OAuth2Config,
        token_client: RequestClient,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._oauth2 = oauth2
        self._client = token_client
        self._clock = clock
        self._state: TokenState | None = None

    @property
    def state(self) -> TokenState | None:
        return self._state

    async def ensure_token(self, force_refresh: bool = False) -> BearerAuth:
        """
        Return a bearer credential, acquiring or refreshing first if needed.

        force_refresh treats the current token as expired regardless of time.
        """

        state = self._state
        if state is not None and not (force_refresh or state.is_expired(self._clock())):
            return BearerAuth(state.access_token)

        if state is not None and state.refresh_token:
            logger.debug("Refreshing OAuth2 token (forced=%s)", force_refresh)
            body = {"grant_type": "refresh_token", "refresh_token": state.refresh_token}
        else:
            logger.debug("Requesting OAuth2 token with grant_type=%s", self._oauth2.grant_type)
            body = {"grant_type": self._oauth2.grant_type}
            if self._oauth2.user is not None:
                body["username"] = self._oauth2.user.username
                body["password"] = self._oauth2.user.password

        response = await self._client.post(self._oauth2.token_endpoint, body)
        self._state = self._parse_token(response)
        return BearerAuth(self._state.access_token)

    def _parse_token(self, response: FullResponse) -> TokenState:
        payload: Any = response.body
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except ValueError:
                pass
        if not isinstance(payload, dict) or not payload.get("access_token"):
            ApplicationFailure(response.status_code, payload, response.headers).unwrap()

        token_type = payload.get("token_type")
        if token_type is not None and str(token_type).lower() != "bearer":
            TokenTypeFailure(str(token_type)).unwrap()

        expires_in = payload.get("expires_in")
        expires_at = None
        if expires_in is not None:
            expires_at = self._clock() + float(expires_in)

        return TokenState(
            access_token=str(payload["access_token"]),
            token_type=token_type,
            refresh_token=payload.get("refresh_token"),
            expires_at=expires_at,
        )
