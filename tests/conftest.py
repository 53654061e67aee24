"""Shared test fixtures for pytest"""
import sys
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.config import Settings  # noqa: E402
from main import create_app  # noqa: E402


def _make_request(method: str = "GET", path: str = "/", headers: dict | None = None) -> Request:
    raw_headers = [
        (key.lower().encode("latin-1"), value.encode("latin-1"))
        for key, value in (headers or {}).items()
    ]
    return Request(
        {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": b"",
            "headers": raw_headers,
        }
    )


@pytest.fixture
def settings() -> Settings:
    """Development settings, isolated from any local .env file"""
    return Settings(_env_file=None, environment="development", static_dir="does-not-exist")


@pytest.fixture
def production_settings() -> Settings:
    return Settings(_env_file=None, environment="production", static_dir="does-not-exist")


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
async def client(app):
    """HTTP client for API testing"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_request():
    """Factory for bare Starlette requests, to exercise the pipeline without a server"""
    return _make_request
