"""
Transports: the only code that touches the network.

Purpose:
- Execute one RequestDescriptor and return status, headers and text body.
- Translate library exceptions into TransportError with a connectivity code.

Logic flow:
1) The executor calls perform_request(descriptor).
2) The transport maps auth, headers, body slot and timeout onto the library.
3) Any library failure is raised as TransportError(code=...); the executor
   decides whether it is a connectivity problem.

Implementations:
- AiohttpTransport: async aiohttp session (default).
- RequestsTransport: requests.Session run in a worker thread.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Protocol
import asyncio
import logging
import socket

import aiohttp
import requests

from .config import BasicAuth, BearerAuth
from .errors import TransportError
from .options import RequestDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str = ""

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


class Transport(Protocol):
    async def perform_request(self, descriptor: RequestDescriptor) -> TransportResponse:
        ...

    async def close(self) -> None:
        ...


def connectivity_code(exc: BaseException) -> str | None:
    """
    Walk an exception chain and name the connectivity failure, if any.
    """

    seen: set[int] = set()
    stack: list[Any] = [exc]
    while stack:
        current = stack.pop()
        if not isinstance(current, BaseException) or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return "ENOTFOUND"
        if isinstance(current, ConnectionRefusedError):
            return "ECONNREFUSED"
        if isinstance(current, (asyncio.TimeoutError, TimeoutError, requests.Timeout)):
            return "ETIMEDOUT"
        stack.extend(
            [
                current.__cause__,
                current.__context__,
                getattr(current, "reason", None),
                getattr(current, "os_error", None),
            ]
        )
        stack.extend(getattr(current, "args", ()))
    return None


def merge_headers(items: Iterable[tuple[str, str]]) -> dict[str, str]:
    """
    Collapse repeated header fields into one comma-joined value.

    The first spelling of a name is kept; lookups stay case-insensitive
    through TransportResponse.header().
    """

    merged: dict[str, str] = {}
    names: dict[str, str] = {}
    for key, value in items:
        name = names.setdefault(key.lower(), key)
        merged[name] = f"{merged[name]}, {value}" if name in merged else value
    return merged


def _request_headers(descriptor: RequestDescriptor) -> dict[str, str]:
    headers = dict(descriptor.headers)
    if descriptor.body_slot == "multipart":
        # The library writes Content-Type itself, including the boundary.
        headers = {key: value for key, value in headers.items() if key.lower() != "content-type"}
    if isinstance(descriptor.auth, BearerAuth):
        headers["Authorization"] = f"Bearer {descriptor.auth.token}"
    return headers


def _transport_error(descriptor: RequestDescriptor, exc: BaseException) -> TransportError:
    return TransportError(
        f"{descriptor.method} {descriptor.url} failed: {exc!r}",
        code=connectivity_code(exc),
        cause=exc,
    )


@dataclass
class AiohttpTransport:
    """
    Async transport backed by one lazily created aiohttp.ClientSession.
    """

    _session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AiohttpTransport":
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    def _body_kwargs(self, descriptor: RequestDescriptor) -> dict[str, Any]:
        if descriptor.body is None:
            return {}
        if descriptor.body_slot == "json":
            return {"json": descriptor.body}
        if descriptor.body_slot == "form":
            return {"data": descriptor.body}
        form = aiohttp.FormData(default_to_multipart=True)
        for key, value in descriptor.body.items():
            form.add_field(key, value if isinstance(value, (bytes, str)) else str(value))
        return {"data": form}

    async def perform_request(self, descriptor: RequestDescriptor) -> TransportResponse:
        session = self._ensure_session()
        kwargs = self._body_kwargs(descriptor)
        if isinstance(descriptor.auth, BasicAuth):
            kwargs["auth"] = aiohttp.BasicAuth(descriptor.auth.username, descriptor.auth.password)
        if descriptor.timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=descriptor.timeout)
        try:
            async with session.request(
                method=descriptor.method,
                url=descriptor.url,
                headers=_request_headers(descriptor),
                **kwargs,
            ) as response:
                body = await response.text()
                return TransportResponse(
                    status_code=response.status,
                    headers=merge_headers(response.headers.items()),
                    body=body,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            raise _transport_error(descriptor, exc) from exc


@dataclass
class RequestsTransport:
    """
    Transport backed by requests.Session, run off the event loop.
    """

    session: requests.Session = field(default_factory=requests.Session)

    def _perform(self, descriptor: RequestDescriptor) -> TransportResponse:
        kwargs: dict[str, Any] = {}
        if descriptor.body is not None:
            if descriptor.body_slot == "json":
                kwargs["json"] = descriptor.body
            elif descriptor.body_slot == "form":
                kwargs["data"] = descriptor.body
            else:
                kwargs["files"] = {key: (None, value) for key, value in descriptor.body.items()}
        if isinstance(descriptor.auth, BasicAuth):
            kwargs["auth"] = (descriptor.auth.username, descriptor.auth.password)
        response = self.session.request(
            method=descriptor.method,
            url=descriptor.url,
            headers=_request_headers(descriptor),
            timeout=descriptor.timeout,
            **kwargs,
        )
        return TransportResponse(
            status_code=response.status_code,
            headers=merge_headers(response.headers.items()),
            body=response.text,
        )

    async def perform_request(self, descriptor: RequestDescriptor) -> TransportResponse:
        try:
            return await asyncio.to_thread(self._perform, descriptor)
        except requests.RequestException as exc:
            raise _transport_error(descriptor, exc) from exc

    async def close(self) -> None:
        self.session.close()
