"""
Exceptions raised to callers of RequestClient.

Every failure of a request surfaces as one of these. Exceptions built from
a classified outcome keep it on `outcome` (see outcomes.py).
"""

from __future__ import annotations

from typing import Any, Mapping

CONNECTIVITY_CODES = frozenset({"ETIMEDOUT", "ECONNREFUSED", "ENOTFOUND"})


class RequestClientError(Exception):
    outcome: Any = None


class TransportError(RequestClientError):
    """
    The transport could not complete the exchange.

    code is one of CONNECTIVITY_CODES when the failure is a connectivity
    problem, otherwise None.
    """

    def __init__(self, message: str, *, code: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.cause = cause

    @property
    def is_connectivity(self) -> bool:
        return self.code in CONNECTIVITY_CODES


class RequestConnectionError(RequestClientError, ConnectionError):
    """
    Connectivity failure (timeout, refused, unknown host). Not retried.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ApplicationError(RequestClientError):
    """
    The server answered with status >= 400; body is the prepared payload.
    """

    def __init__(self, status_code: int, body: Any, headers: Mapping[str, str] | None = None) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers or {})

    def __str__(self) -> str:
        return f"HTTP {self.status_code}: {self.body!r}"


class TokenTypeError(RequestClientError):
    def __init__(self, token_type: str) -> None:
        super().__init__(f"Unknown token type '{token_type}', only 'bearer' is supported.")
        self.token_type = token_type


class CacheWriteWarning(UserWarning):
    """
    A response could not be stored in the cache. Logged, never raised.
    """

    def __init__(self, key: str, cause: BaseException) -> None:
        super().__init__(f"Error storing '{key}' in cache: {cause}")
        self.key = key
        self.cause = cause
