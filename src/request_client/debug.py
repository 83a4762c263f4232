"""
Request/response debug output.

Requests are rendered as a curl command that can be pasted into a shell,
with every secret replaced by a ${PLACEHOLDER}. Nothing here may raise
into the request path or change its outcome.
"""

from __future__ import annotations

from typing import Any, Mapping
import json
import logging
import re
import shlex

from .config import BasicAuth, BearerAuth, ClientConfig
from .options import RequestDescriptor

SENSITIVE_FIELDS = frozenset({"password", "client_secret", "access_token", "refresh_token"})
_SENSITIVE_HEADERS = frozenset({"authorization", "proxy-authorization"}) | SENSITIVE_FIELDS
_SENSITIVE_QUERY = re.compile(r"(?<=[?&])(?P<key>%s)=[^&#]*" % "|".join(sorted(SENSITIVE_FIELDS)))

logger = logging.getLogger(__name__)


def _placeholder(name: str) -> str:
    return "${" + re.sub(r"[^A-Za-z0-9]+", "_", name).upper() + "}"


def _mask_fields(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            key: _placeholder(str(key)) if str(key).lower() in SENSITIVE_FIELDS else _mask_fields(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_mask_fields(item) for item in value]
    return value


def _mask_url(url: str) -> str:
    return _SENSITIVE_QUERY.sub(lambda m: f"{m.group('key')}={_placeholder(m.group('key'))}", url)


def _serialize(body: Any) -> str:
    if isinstance(body, (dict, list)):
        return json.dumps(body)
    return str(body)


def render_curl(descriptor: RequestDescriptor) -> str:
    """
    Render a descriptor as a redacted curl command line.
    """

    parts = ["curl", "-X", descriptor.method, shlex.quote(_mask_url(descriptor.url))]
    for key, value in descriptor.headers.items():
        shown = _placeholder(key) if key.lower() in _SENSITIVE_HEADERS else value
        parts += ["-H", shlex.quote(f"{key}: {shown}")]

    if isinstance(descriptor.auth, BasicAuth):
        parts += ["-u", shlex.quote(f"{descriptor.auth.username}:${{PASSWORD}}")]
    elif isinstance(descriptor.auth, BearerAuth):
        parts += ["-H", shlex.quote("Authorization: Bearer ${ACCESS_TOKEN}")]

    body = descriptor.body
    if body is not None:
        if descriptor.body_slot == "json":
            if not any(key.lower() == "content-type" for key in descriptor.headers):
                parts += ["-H", shlex.quote("Content-Type: application/json")]
            parts += ["-d", shlex.quote(_serialize(_mask_fields(body)))]
        elif isinstance(body, Mapping):
            flag = "-F" if descriptor.body_slot == "multipart" else "-d"
            for key, value in _mask_fields(body).items():
                parts += [flag, shlex.quote(f"{key}={value}")]
        else:
            parts += ["-d", shlex.quote(str(body))]
    return " ".join(parts)


class DebugLogger:
    """
    Emits request/response lines for one client when its debug flags are on.
    """

    def __init__(self, config: ClientConfig) -> None:
        self._config = config
        self._logger = config.logger or logger

    def _extra(self, direction: str, **fields: Any) -> dict[str, Any]:
        return {"client": self._config.name, "direction": direction, **fields}

    def request(self, descriptor: RequestDescriptor) -> None:
        if not self._config.debug_request:
            return
        try:
            rendered = render_curl(descriptor)
        except Exception:  # advisory output must not break the request
            self._logger.exception("Could not render request for %s", descriptor.url)
            return
        self._logger.info(
            "[Requesting %s]-> %s", self._config.name, rendered, extra=self._extra("request")
        )

    def response(self, status_code: int, body: Any) -> None:
        if not self._config.debug_response:
            return
        if isinstance(body, str):
            try:
                decoded = json.loads(body)
            except ValueError:
                decoded = None
            if isinstance(decoded, (dict, list)):
                body = decoded
        if isinstance(body, (dict, list)):
            try:
                body = json.dumps(_mask_fields(body))
            except (TypeError, ValueError):
                body = repr(_mask_fields(body))
        log = self._logger.error if status_code >= 400 else self._logger.info
        log(
            "[Response   %s]<- Status %s - %s",
            self._config.name,
            status_code,
            body,
            extra=self._extra("response", status_code=status_code),
        )

    def cached(self) -> None:
        if self._config.debug_response:
            self._logger.info(
                "[Response   %s]<- Returning from cache", self._config.name, extra=self._extra("cache")
            )
