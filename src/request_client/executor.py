"""
Request executor: one call, at most two attempts.

Logic flow:
1) Build the descriptor (options.py), awaiting a token if OAuth2 is set.
2) Attempt 1: debug line, transport call, classify.
3) If the result is a 401 with a Bearer challenge and OAuth2 is set,
   force a token refresh, swap the descriptor auth, and run attempt 2.
4) Attempt 2 is classified as final; a second 401 is not retried.

Every failure is returned as an outcome variant; nothing is raised for a
classified exchange.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
import json
import logging
import re

from .config import ClientConfig
from .debug import DebugLogger
from .errors import RequestClientError, TransportError
from .options import RequestDescriptor, RequestOptions, RequestOptionsBuilder
from .outcomes import (
    ApplicationFailure,
    ConnectionFailure,
    FullResponse,
    Outcome,
    Success,
    TransportFailure,
)
from .transport import Transport, TransportResponse
from .uri import UriLike

if TYPE_CHECKING:
    from .oauth2 import TokenManager

logger = logging.getLogger(__name__)

# Challenges are comma-separated; repeated headers arrive joined the same way.
_BEARER_CHALLENGE = re.compile(r"(?:^|,)\s*bearer(?:\s|,|$)", re.IGNORECASE)


def prepare_body(config: ClientConfig, response: TransportResponse) -> Any:
    """
    Decode JSON text bodies; fall back to the raw text.
    """

    body = response.body
    content_type = (response.header("Content-Type") or "").lower()
    if isinstance(body, str) and body and (config.content_type == "json" or "json" in content_type):
        try:
            return json.loads(body)
        except ValueError:
            return body
    return body


def is_bearer_challenge(response: TransportResponse) -> bool:
    """
    True when any challenge in WWW-Authenticate uses the Bearer scheme.
    """

    return bool(_BEARER_CHALLENGE.search(response.header("WWW-Authenticate") or ""))


class RequestExecutor:
    """
    Drives request attempts for one client through its transport.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Transport,
        token_manager: TokenManager | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._token_manager = token_manager
        self._builder = RequestOptionsBuilder(config, token_manager)
        self._debug = DebugLogger(config)
        self._logger = config.logger or logger

    @property
    def debug(self) -> DebugLogger:
        return self._debug

    async def send(
        self,
        method: str,
        uri: UriLike,
        body: Any = None,
        options: RequestOptions | None = None,
    ) -> Outcome:
        try:
            descriptor = await self._builder.build(method, uri, body, options)
            response, outcome = await self._attempt(descriptor)
            if (
                response is not None
                and self._token_manager is not None
                and response.status_code == 401
                and is_bearer_challenge(response)
            ):
                self._logger.info(
                    "Received bearer challenge from %s, refreshing token and retrying", descriptor.url
                )
                descriptor = descriptor.with_auth(
                    await self._token_manager.ensure_token(force_refresh=True)
                )
                _, outcome = await self._attempt(descriptor)
        except RequestClientError as exc:
            # Failures from the token endpoint reach the caller as their outcome.
            if exc.outcome is None:
                raise
            return exc.outcome
        return outcome

    async def execute(
        self,
        method: str,
        uri: UriLike,
        body: Any = None,
        options: RequestOptions | None = None,
    ) -> Any:
        outcome = await self.send(method, uri, body, options)
        return outcome.unwrap()

    async def _attempt(
        self, descriptor: RequestDescriptor
    ) -> tuple[TransportResponse | None, Outcome]:
        self._debug.request(descriptor)
        try:
            response = await self._transport.perform_request(descriptor)
        except TransportError as exc:
            if exc.is_connectivity:
                self._logger.error(
                    "Error doing %s to %s. %s", descriptor.method, descriptor.url, exc.cause or exc
                )
                return None, ConnectionFailure(exc)
            return None, TransportFailure(exc)
        return response, self._classify(descriptor, response)

    def _classify(self, descriptor: RequestDescriptor, response: TransportResponse) -> Outcome:
        body = prepare_body(self._config, response)
        self._debug.response(response.status_code, body)
        if response.status_code < 400:
            if descriptor.full_response:
                return Success(FullResponse(response.status_code, response.headers, body))
            return Success(body)
        return ApplicationFailure(response.status_code, body, response.headers)
