import os

import pytest

from request_client.errors import TransportError
from request_client.transport import TransportResponse


class DummyTransport:
    """
    Replays scripted responses (or raises scripted errors) in order.
    """

    def __init__(self, *results):
        self.results = list(results)
        self.descriptors = []
        self.closed = False

    def add(self, status_code=200, body="", headers=None):
        self.results.append(TransportResponse(status_code, headers or {}, body))

    def fail(self, code=None, cause=None):
        self.results.append(TransportError("boom", code=code, cause=cause))

    async def perform_request(self, descriptor):
        self.descriptors.append(descriptor)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def close(self):
        self.closed = True


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def transport() -> DummyTransport:
    return DummyTransport()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def clear_env():
    keys = [
        "REQUEST_CLIENT_TIMEOUT",
        "REQUEST_CLIENT_DEBUG_REQUEST",
        "REQUEST_CLIENT_DEBUG_RESPONSE",
    ]
    original = {key: os.getenv(key) for key in keys}
    for key in keys:
        if key in os.environ:
            del os.environ[key]
    yield
    for key, value in original.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value
