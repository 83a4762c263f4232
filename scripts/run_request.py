"""
Issue one request through a client defined in clients.yaml and print the result.

Outputs:
- JSON document with ok/status/latency/payload for quick tracing.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
import time

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from request_client import ApplicationError, RequestClientError, setup_logging
from request_client.app import load_client


def parse_args():
    parser = argparse.ArgumentParser()
    parser.add_argument("client", help="client name in clients.yaml")
    parser.add_argument("uri", help="URI relative to the client url, or absolute")
    parser.add_argument("--method", default="GET")
    parser.add_argument("--config", default="clients.yaml")
    parser.add_argument("--data", help="JSON body for POST/PUT/PATCH")
    parser.add_argument("--query", action="append", default=[], metavar="KEY=VALUE")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--json-logs", action="store_true")
    parser.add_argument("--client-log-level", default=None)
    return parser.parse_args()


def parse_query(pairs: list[str]) -> dict[str, list[str]]:
    query: dict[str, list[str]] = {}
    for pair in pairs:
        key, _, value = pair.partition("=")
        query.setdefault(key, []).append(value)
    return query


async def run(args) -> dict[str, object]:
    body = json.loads(args.data) if args.data else None
    uri = {"uri": args.uri, "query": parse_query(args.query)}
    start = time.perf_counter()
    async with load_client(args.config, args.client) as client:
        try:
            response = await client.request(args.method, uri, body, full_response=True)
            status, payload, ok = response.status_code, response.body, True
        except ApplicationError as exc:
            status, payload, ok = exc.status_code, exc.body, False
        except RequestClientError as exc:
            status, payload, ok = None, str(exc), False
    elapsed_ms = (time.perf_counter() - start) * 1000.0
    return {"ok": ok, "status": status, "latency_ms": round(elapsed_ms, 2), "payload": payload}


def main() -> None:
    args = parse_args()
    setup_logging(args.log_level, json_output=args.json_logs, package_level=args.client_log_level)
    result = asyncio.run(run(args))
    print(json.dumps(result, indent=2, default=str))
    if not result["ok"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
