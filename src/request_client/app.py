"""
Runtime assembly helpers.

Purpose:
- Keep wiring logic (YAML -> config -> client) in one place.

Logic flow:
1) load_client() reads clients.yaml.
2) validate_client_configs() rejects suspicious settings.
3) build_client() creates the RequestClient for the named entry.
"""

from __future__ import annotations

from .cache import CacheStore
from .client import RequestClient
from .config import ClientConfig, load_client_configs
from .transport import Transport
from .validation import validate_client_configs


def build_client(
    config: ClientConfig,
    *,
    transport: Transport | None = None,
    cache_store: CacheStore | None = None,
) -> RequestClient:
    """
    Create a RequestClient for a resolved configuration.
    """

    return RequestClient(config, transport=transport, cache_store=cache_store)


def load_client(path: str, name: str, *, transport: Transport | None = None) -> RequestClient:
    """
    Find a client by name in clients.yaml and return a RequestClient.
    """

    configs = load_client_configs(path)
    warnings = validate_client_configs(configs)
    if warnings:
        # Fail fast so bad settings are fixed before HTTP calls.
        raise ValueError("clients.yaml validation warnings: " + "; ".join(warnings))
    config = configs.get(name)
    if config is None:
        available = ", ".join(sorted(configs.keys()))
        raise ValueError(f"Client '{name}' not found. Available: {available}")
    return build_client(config, transport=transport)
