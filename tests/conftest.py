"""
Pytest configuration for the synthetic handler tests.

Handlers are exercised in-process through httpx's ASGI transport; the live
server tests start uvicorn on an ephemeral port instead.
"""

import httpx
import pytest
from starlette.requests import Request

from grabtest.main import create_app
from grabtest.options import build_config


def pytest_configure(config):
    """Configure pytest-asyncio mode."""
    config.addinivalue_line("markers", "asyncio: mark test as async")


@pytest.fixture
def make_client():
    """
    Factory fixture that returns an AsyncClient bound to a handler built from options.

    Usage:
        async def test_something(make_client):
            async with make_client(content_length(128)) as client:
                response = await client.get("/")
    """

    def _make_client(*options) -> httpx.AsyncClient:
        app = create_app(build_config(*options))
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")

    return _make_client


@pytest.fixture
def make_request():
    """Factory fixture building a bare starlette Request for the composer."""

    def _make_request(method: str = "GET", headers: dict | None = None) -> Request:
        raw_headers = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()]
        return Request({"type": "http", "method": method, "path": "/", "headers": raw_headers, "query_string": b""})

    return _make_request
