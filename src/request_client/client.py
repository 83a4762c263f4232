"""
Public client: HTTP verbs over the executor, plus the GET cache.

Purpose:
- Remove per-request boilerplate: base URL, timeout, content type,
  auth/OAuth2, error classification and optional caching.

Logic flow:
1) The caller invokes get/post/put/patch/delete with a URI and options.
2) GET with cache_ttl on a caching client checks the cache first.
3) The executor builds, sends, classifies and (once) re-authenticates.
4) Successful cacheable GET results are stored before returning.

Example:
    async with RequestClient(ClientConfig(url="https://api.example.com/v1")) as client:
        order = await client.get(UriSpec("orders/{id}", params={"id": 1234}))
"""

from __future__ import annotations

from typing import Any, Mapping
import logging

from .cache import MISSING, CacheStore, MemoryCacheStore
from .config import Auth, ClientConfig
from .errors import CacheWriteWarning
from .executor import RequestExecutor
from .oauth2 import TokenManager, build_token_client_config
from .options import RequestOptions
from .outcomes import Outcome
from .transport import AiohttpTransport, Transport
from .uri import UriLike, resolve_uri

logger = logging.getLogger(__name__)


class RequestClient:
    """
    Async HTTP client bound to one ClientConfig.

    transport and cache_store are optional collaborators; when omitted an
    AiohttpTransport (owned and closed by this client) and, if config.cache
    is set, a MemoryCacheStore are created.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Transport | None = None,
        cache_store: CacheStore | None = None,
        token_manager: TokenManager | None = None,
    ) -> None:
        self.config = config
        self._owns_transport = transport is None
        self._transport: Transport = transport or AiohttpTransport()
        self._cache: CacheStore | None = None
        if config.cache:
            self._cache = cache_store if cache_store is not None else MemoryCacheStore()
        self._logger = config.logger or logger

        self.token_manager = token_manager
        if self.token_manager is None and config.oauth2 is not None:
            token_client = RequestClient(
                build_token_client_config(config, config.oauth2),
                transport=self._transport,
            )
            self.token_manager = TokenManager(config.oauth2, token_client)
        self._executor = RequestExecutor(config, self._transport, self.token_manager)

    async def __aenter__(self) -> "RequestClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_transport:
            await self._transport.close()

    async def send(
        self,
        method: str,
        uri: UriLike,
        body: Any = None,
        options: RequestOptions | None = None,
    ) -> Outcome:
        """
        Run one request and return its classified outcome without raising.
        """

        return await self._executor.send(method, uri, body, options)

    async def request(
        self,
        method: str,
        uri: UriLike,
        body: Any = None,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        auth: Auth | None = None,
        encode_query: bool | None = None,
        full_response: bool | None = None,
        cache_ttl: float | None = None,
    ) -> Any:
        """
        Run one request and return the prepared body (or FullResponse).

        Raises ApplicationError for status >= 400, RequestConnectionError for
        connectivity failures, TokenTypeError for unsupported tokens and
        TransportError for any other transport failure.
        """

        options = RequestOptions(
            headers=headers,
            timeout=timeout,
            auth=auth,
            encode_query=encode_query,
            full_response=full_response,
            cache_ttl=cache_ttl,
        )
        if method.upper() == "GET" and self._cache is not None and cache_ttl is not None:
            return await self._cached_get(self._cache, uri, options, cache_ttl)
        return await self._executor.execute(method, uri, body, options)

    async def get(self, uri: UriLike, **options: Any) -> Any:
        return await self.request("GET", uri, **options)

    async def post(self, uri: UriLike, body: Any = None, **options: Any) -> Any:
        return await self.request("POST", uri, body, **options)

    async def put(self, uri: UriLike, body: Any = None, **options: Any) -> Any:
        return await self.request("PUT", uri, body, **options)

    async def patch(self, uri: UriLike, body: Any = None, **options: Any) -> Any:
        return await self.request("PATCH", uri, body, **options)

    async def delete(self, uri: UriLike, **options: Any) -> Any:
        return await self.request("DELETE", uri, **options)

    def cache_key(self, uri: UriLike, *, encode_query: bool | None = None) -> str:
        """
        Cache key for a URI: the resolved URI the request would use.
        """

        effective = self.config.encode_query if encode_query is None else encode_query
        return resolve_uri(uri, encode_query=effective)

    async def delete_from_cache(self, uri: UriLike, *, encode_query: bool | None = None) -> None:
        if self._cache is None:
            return
        await self._cache.delete(self.cache_key(uri, encode_query=encode_query))

    async def _cached_get(
        self, cache: CacheStore, uri: UriLike, options: RequestOptions, ttl: float
    ) -> Any:
        key = self.cache_key(uri, encode_query=options.encode_query)
        try:
            cached = await cache.get(key)
        except Exception as exc:  # a broken cache degrades to a miss
            self._logger.error("Error reading '%s' from cache: %s", key, exc)
            cached = MISSING
        if cached is not MISSING:
            self._executor.debug.cached()
            return cached

        value = await self._executor.execute("GET", uri, None, options)
        try:
            await cache.set(key, value, ttl)
        except Exception as exc:  # the real response is still returned
            self._logger.warning("%s", CacheWriteWarning(key, exc))
        return value
