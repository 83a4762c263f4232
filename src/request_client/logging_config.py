"""
Logging setup for applications and scripts using request_client.

Purpose:
- Give the [Requesting]/[Response] debug lines a consistent format.
- Support JSONL output for easy ingestion by downstream tools.

Notes:
- The library itself only creates module loggers under "request_client";
  handlers are the application's business, this is a convenience.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
import json
import logging

PACKAGE_LOGGER = "request_client"
TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"


# Attributes the debug logger attaches via `extra=`; copied into JSON output.
CONTEXT_FIELDS = ("client", "direction", "status_code")


class JsonFormatter(logging.Formatter):
    """
    JSONL formatter: one object per record, plus client context fields.

    Records from DebugLogger carry the client name, the direction
    ("request", "response" or "cache") and, for responses, the status code,
    so JSONL consumers can filter without parsing the message text.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(level: str = "INFO", *, json_output: bool = False, package_level: str | None = None) -> None:
    """
    Configure root logging with optional JSONL output.

    package_level sets the "request_client" logger separately, e.g. DEBUG
    to see token lifecycle messages while the rest of the app stays at INFO.
    """

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    logging.basicConfig(level=level.upper(), handlers=[handler])
    if package_level is not None:
        logging.getLogger(PACKAGE_LOGGER).setLevel(package_level.upper())
