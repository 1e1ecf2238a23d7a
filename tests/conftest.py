"""Root test fixtures shared across all test types.

The app under test talks to an in-memory fake of the data store
(tests/helpers.py) through a dependency override.
"""

import os

# Configure the environment before any app imports
os.environ["APP_ENV"] = "testing"
os.environ["SUPABASE_URL"] = "https://datastore.test"
os.environ["SUPABASE_ANON_KEY"] = "anon-test-key"
os.environ["APP_ORIGIN"] = "https://app.example.com"
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("FROM_EMAIL", None)
os.environ.pop("METRICS_API_KEY", None)

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.app.api.dependencies import AccessToken, get_datastore
from src.app.core.config import get_settings
from src.app.main import create_app
from tests.helpers import FakeBackend, FakeDataStore, seeded_backend

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def backend() -> FakeBackend:
    """org1 seeded with an ADMIN, a TEAM and a CUSTOMER member."""
    return seeded_backend()


@pytest.fixture
def app(backend: FakeBackend) -> FastAPI:
    """App whose data store client is the in-memory fake.

    The bearer token is still extracted by the real dependency, so missing
    credentials fail exactly as in production.
    """
    app = create_app()

    async def _fake_datastore(access_token: AccessToken) -> AsyncGenerator[FakeDataStore]:
        async with backend.client_for(access_token) as datastore:
            yield datastore

    app.dependency_overrides[get_datastore] = _fake_datastore
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Test client fixture."""
    return TestClient(app)
