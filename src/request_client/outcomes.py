"""
Classified results of one request.

The executor never raises for an exchange it could classify; it returns one
of the variants below. unwrap() turns a variant into the value or the
matching exception, which is what the public verb methods do.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, NoReturn, Union

from .errors import (
    ApplicationError,
    RequestConnectionError,
    TokenTypeError,
    TransportError,
)


@dataclass(frozen=True)
class FullResponse:
    status_code: int
    headers: Mapping[str, str]
    body: Any


@dataclass(frozen=True)
class Success:
    value: Any

    def unwrap(self) -> Any:
        return self.value


@dataclass(frozen=True)
class ConnectionFailure:
    error: TransportError

    def unwrap(self) -> NoReturn:
        exc = RequestConnectionError("Connection error", self.error.cause or self.error)
        exc.outcome = self
        raise exc from (self.error.cause or self.error)


@dataclass(frozen=True)
class TransportFailure:
    error: TransportError

    def unwrap(self) -> NoReturn:
        self.error.outcome = self
        raise self.error


@dataclass(frozen=True)
class ApplicationFailure:
    status_code: int
    body: Any
    headers: Mapping[str, str] = field(default_factory=dict)

    def unwrap(self) -> NoReturn:
        exc = ApplicationError(self.status_code, self.body, self.headers)
        exc.outcome = self
        raise exc


@dataclass(frozen=True)
class TokenTypeFailure:
    token_type: str

    def unwrap(self) -> NoReturn:
        exc = TokenTypeError(self.token_type)
        exc.outcome = self
        raise exc


Failure = Union[ConnectionFailure, TransportFailure, ApplicationFailure, TokenTypeFailure]
Outcome = Union[Success, Failure]
