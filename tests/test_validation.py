from __future__ import annotations

from request_client.config import BasicAuth, BearerAuth, ClientConfig, OAuth2Config
from request_client.validation import validate_client_configs


def test_clean_configs_have_no_warnings() -> None:
    configs = {
        "plain": ClientConfig(url="https://api.example.com"),
        "oauth": ClientConfig(
            url="https://api.example.com",
            oauth2=OAuth2Config(url="https://auth.example.com", auth=BasicAuth("app", "s")),
        ),
    }
    assert validate_client_configs(configs) == []


def test_suspicious_configs_are_reported() -> None:
    configs = {
        "ftp": ClientConfig(url="ftp://files.example.com"),
        "mixed": ClientConfig(
            url="https://api.example.com",
            auth=BearerAuth("static"),
            oauth2=OAuth2Config(url="auth.example.com"),
        ),
    }
    warnings = validate_client_configs(configs)
    assert len(warnings) == 4
    assert any("'ftp'" in warning and "http or https" in warning for warning in warnings)
    assert any("oauth2 url" in warning for warning in warnings)
    assert any("no client credentials" in warning for warning in warnings)
    assert any("auth will be ignored" in warning for warning in warnings)
