"""
Async HTTP request client.

Wraps a transport with URI templating, per-client defaults, an optional
GET cache and an OAuth2 token lifecycle (acquire, refresh, retry on 401).
Import paths are exported here to keep the public surface area obvious.
"""

from .config import (
    BasicAuth,
    BearerAuth,
    ClientConfig,
    OAuth2Config,
    OAuth2User,
    load_client_configs,
)
from .uri import UriSpec, resolve_uri
from .options import RequestDescriptor, RequestOptions
from .oauth2 import TokenManager, TokenState
from .cache import MISSING, CacheStore, MemoryCacheStore
from .transport import AiohttpTransport, RequestsTransport, Transport, TransportResponse
from .errors import (
    ApplicationError,
    CacheWriteWarning,
    RequestClientError,
    RequestConnectionError,
    TokenTypeError,
    TransportError,
)
from .outcomes import (
    ApplicationFailure,
    ConnectionFailure,
    FullResponse,
    Success,
    TokenTypeFailure,
    TransportFailure,
)
from .debug import render_curl
from .client import RequestClient
from .validation import validate_client_configs
from .app import build_client, load_client
from .logging_config import setup_logging

__all__ = [
    "BasicAuth",
    "BearerAuth",
    "ClientConfig",
    "OAuth2Config",
    "OAuth2User",
    "load_client_configs",
    "UriSpec",
    "resolve_uri",
    "RequestDescriptor",
    "RequestOptions",
    "TokenManager",
    "TokenState",
    "MISSING",
    "CacheStore",
    "MemoryCacheStore",
    "AiohttpTransport",
    "RequestsTransport",
    "Transport",
    "TransportResponse",
    "ApplicationError",
    "CacheWriteWarning",
    "RequestClientError",
    "RequestConnectionError",
    "TokenTypeError",
    "TransportError",
    "ApplicationFailure",
    "ConnectionFailure",
    "FullResponse",
    "Success",
    "TokenTypeFailure",
    "TransportFailure",
    "render_curl",
    "RequestClient",
    "validate_client_configs",
    "build_client",
    "load_client",
    "setup_logging",
]
