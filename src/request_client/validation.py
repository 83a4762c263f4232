"""
Validation helpers for clients.yaml.

Purpose:
- Catch suspicious client settings before the first network call.

Logic flow:
1) validate_client_configs() inspects every ClientConfig for common issues.
2) app.load_client() treats any warning as a hard error.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from .config import ClientConfig


def validate_client_configs(configs: dict[str, ClientConfig]) -> list[str]:
    """
    Validate loaded client configs and return warnings.

    Inputs:
    - configs: output of load_client_configs().

    Outputs:
    - List of warning strings (empty list means no issues detected).
    """

    warnings: list[str] = []

    for name, config in configs.items():
        if urlsplit(config.url).scheme not in {"http", "https"}:
            warnings.append(f"Client '{name}' url '{config.url}' should use http or https.")

        oauth2 = config.oauth2
        if oauth2 is None:
            continue
        if urlsplit(oauth2.url).scheme not in {"http", "https"}:
            warnings.append(f"Client '{name}' oauth2 url '{oauth2.url}' should use http or https.")
        # Client credentials are required by both supported grants.
        if oauth2.auth is None:
            warnings.append(f"Client '{name}' oauth2 has no client credentials (auth).")
        # OAuth2 bearer always replaces static auth, so both is a config smell.
        if config.auth is not None:
            warnings.append(f"Client '{name}' sets both auth and oauth2; auth will be ignored.")

    return warnings
