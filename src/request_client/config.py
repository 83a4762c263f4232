"""
Client configuration and YAML/env loader.

Purpose:
- Enumerate every option a RequestClient understands, with its default.
- Validate once at construction so the request path never re-checks config.

Sources:
- clients.yaml (local file): one mapping of options per named client.
- environment variables (.env is supported): secrets and global overrides.

Logic flow (high level):
1) load_client_configs() reads clients.yaml and builds ClientConfig entries.
2) Secrets referenced with *_env keys are pulled from the environment.
3) REQUEST_CLIENT_* overrides are applied on top of the YAML values.
4) ClientConfig is consumed by app.py -> client.py -> options/executor.

Tracing notes:
- If a value is missing or invalid, errors are raised where it is first
  required so the caller knows which client and key is incomplete.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Union
from urllib.parse import urlsplit
import logging
import os

import yaml

CONTENT_TYPES = ("json", "form", "multipart")
_CONTENT_TYPE_ALIASES = {"formData": "multipart", "formdata": "multipart"}
DEFAULT_TOKEN_ENDPOINT = "token"
_ENV_LOADED = False
_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class BasicAuth:
    """
    Static username/password credentials (HTTP basic auth).
    """

    username: str
    password: str

    def __repr__(self) -> str:
        return f"BasicAuth(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class BearerAuth:
    """
    Bearer token credentials, static or issued by the token manager.
    """

    token: str

    def __repr__(self) -> str:
        return "BearerAuth(token='***')"


Auth = Union[BasicAuth, BearerAuth]


@dataclass(frozen=True)
class OAuth2User:
    """
    Resource owner credentials for the password grant.
    """

    username: str
    password: str

    def __repr__(self) -> str:
        return f"OAuth2User(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class OAuth2Config:
    """
    Token endpoint settings.

    Fields:
    - url: base URL of the authorization server.
    - token_endpoint: path appended to url (default "token").
    - auth: client credentials sent to the token endpoint.
    - user: optional resource owner; switches the grant to "password".
    """

    url: str
    token_endpoint: str = DEFAULT_TOKEN_ENDPOINT
    auth: Auth | None = None
    user: OAuth2User | None = None

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("oauth2.url is required.")
        if not self.token_endpoint:
            raise ValueError("oauth2.token_endpoint must not be empty.")

    @property
    def grant_type(self) -> str:
        return "password" if self.user is not None else "client_credentials"


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable settings shared by every request a client makes.

    The URL is normalised to end with "/" so relative URIs can be appended.
    """

    url: str
    timeout: float | None = None
    content_type: str = "json"
    headers: Mapping[str, str] = field(default_factory=dict)
    auth: Auth | None = None
    oauth2: OAuth2Config | None = None
    encode_query: bool = True
    full_response: bool = False
    cache: bool = False
    name: str | None = None
    logger: logging.Logger | None = field(default=None, compare=False)
    debug_request: bool = False
    debug_response: bool = False

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("url is required.")
        if not self.url.endswith("/"):
            object.__setattr__(self, "url", self.url + "/")
        content_type = _CONTENT_TYPE_ALIASES.get(self.content_type, self.content_type)
        if content_type not in CONTENT_TYPES:
            raise ValueError(
                f"Unsupported content_type '{self.content_type}'. "
                f"Use one of: {', '.join(CONTENT_TYPES)}."
            )
        object.__setattr__(self, "content_type", content_type)
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0 seconds.")
        if self.auth is not None and not isinstance(self.auth, (BasicAuth, BearerAuth)):
            raise ValueError("auth must be BasicAuth or BearerAuth.")
        # Copy so later changes to the caller's dict cannot leak in.
        object.__setattr__(self, "headers", dict(self.headers or {}))
        if self.name is None:
            object.__setattr__(self, "name", urlsplit(self.url).netloc or self.url)


def _read_env(var_name: str, *, required: bool) -> str | None:
    value = os.getenv(var_name)
    if required and not value:
        raise ValueError(f"Missing required environment variable '{var_name}'.")
    return value


def _read_float(var_name: str) -> float | None:
    value = os.getenv(var_name)
    if value is None or value == "":
        return None
    return float(value)


def _read_bool(var_name: str) -> bool | None:
    value = os.getenv(var_name)
    if value is None or value == "":
        return None
    return value.strip().lower() in _TRUE_STRINGS


def _parse_flag(value: Any, default: bool, where: str) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"{where} must be a boolean, got {value!r}.")


def _load_env_file(path: str = ".env") -> None:
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    if not os.path.exists(path):
        _ENV_LOADED = True
        return

    with open(path, "r", encoding="utf-8") as handle:
        for raw_line in handle:
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip("'\"")
            if key and value and key not in os.environ:
                os.environ[key] = value

    _ENV_LOADED = True


def _secret(raw: Mapping[str, Any], key: str, where: str) -> str:
    # Inline value wins; otherwise "<key>_env" names the variable to read.
    if raw.get(key):
        return str(raw[key])
    env_name = raw.get(f"{key}_env")
    if env_name:
        return str(_read_env(str(env_name), required=True))
    raise ValueError(f"{where} missing '{key}' (or '{key}_env').")


def _parse_auth(raw: Any, where: str) -> Auth | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError(f"{where} must be a mapping.")
    if "token" in raw or "token_env" in raw:
        return BearerAuth(token=_secret(raw, "token", where))
    if "username" not in raw:
        raise ValueError(f"{where} needs either 'username' or 'token'.")
    return BasicAuth(username=str(raw["username"]), password=_secret(raw, "password", where))


def _parse_oauth2(raw: Any, where: str) -> OAuth2Config | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError(f"{where} must be a mapping.")
    try:
        url = str(raw["url"])
    except KeyError as exc:
        raise ValueError(f"{where} missing required key: {exc}") from exc
    user = None
    if raw.get("user") is not None:
        user_raw = raw["user"]
        if not isinstance(user_raw, dict) or "username" not in user_raw:
            raise ValueError(f"{where}.user must be a mapping with 'username'.")
        user = OAuth2User(
            username=str(user_raw["username"]),
            password=_secret(user_raw, "password", f"{where}.user"),
        )
    return OAuth2Config(
        url=url,
        token_endpoint=str(raw.get("token_endpoint", DEFAULT_TOKEN_ENDPOINT)),
        auth=_parse_auth(raw.get("auth"), f"{where}.auth"),
        user=user,
    )


def _parse_client(name: str, raw: Any) -> ClientConfig:
    where = f"Client '{name}'"
    if not isinstance(raw, dict):
        raise ValueError(f"{where} must be a mapping.")
    try:
        url = str(raw["url"])
    except KeyError as exc:
        raise ValueError(f"{where} missing required key: {exc}") from exc
    headers = raw.get("headers") or {}
    if not isinstance(headers, dict):
        raise ValueError(f"{where} headers must be a mapping.")
    timeout = raw.get("timeout")
    return ClientConfig(
        url=url,
        timeout=float(timeout) if timeout is not None else None,
        content_type=str(raw.get("content_type", "json")),
        headers={str(key): str(value) for key, value in headers.items()},
        auth=_parse_auth(raw.get("auth"), f"{where} auth"),
        oauth2=_parse_oauth2(raw.get("oauth2"), f"{where} oauth2"),
        encode_query=_parse_flag(raw.get("encode_query"), True, f"{where} encode_query"),
        full_response=_parse_flag(raw.get("full_response"), False, f"{where} full_response"),
        cache=_parse_flag(raw.get("cache"), False, f"{where} cache"),
        name=str(raw.get("name", name)),
        debug_request=_parse_flag(raw.get("debug_request"), False, f"{where} debug_request"),
        debug_response=_parse_flag(raw.get("debug_response"), False, f"{where} debug_response"),
    )


def apply_env_overrides(config: ClientConfig) -> ClientConfig:
    """
    Apply REQUEST_CLIENT_* environment overrides to a config.
    """

    changes: dict[str, Any] = {}
    timeout = _read_float("REQUEST_CLIENT_TIMEOUT")
    if timeout is not None:
        changes["timeout"] = timeout
    debug_request = _read_bool("REQUEST_CLIENT_DEBUG_REQUEST")
    if debug_request is not None:
        changes["debug_request"] = debug_request
    debug_response = _read_bool("REQUEST_CLIENT_DEBUG_RESPONSE")
    if debug_response is not None:
        changes["debug_response"] = debug_response
    return replace(config, **changes) if changes else config


def load_client_configs(path: str) -> dict[str, ClientConfig]:
    """
    Load named client configurations from a YAML file.

    Inputs:
    - path: path to clients.yaml.

    Outputs:
    - Dict mapping client name -> ClientConfig (env overrides applied).

    Next:
    - validate_client_configs() reports suspicious combinations.
    """

    _load_env_file()
    with open(path, "r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict) or "clients" not in raw:
        raise ValueError("clients.yaml must contain a top-level 'clients' mapping.")
    clients = raw["clients"]
    if not isinstance(clients, dict):
        raise ValueError("'clients' must be a mapping of client names to definitions.")
    return {
        str(name): apply_env_overrides(_parse_client(str(name), entry))
        for name, entry in clients.items()
    }
