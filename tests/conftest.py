"""
Test configuration and fixtures for the CryptoSI Images backend.

Settings are rebuilt from a controlled environment for every test and the
in-memory session store is emptied, so no test sees another test's form.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from cryptosi.config import get_settings
from cryptosi.services.form_state import FormState
from cryptosi.services.session import session_store

from tests._helpers import TEST_API_KEY, make_image_bytes


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Point settings at a predictable environment."""
    monkeypatch.setenv("HYPERBOLIC_API_KEY", TEST_API_KEY)
    monkeypatch.setenv("HYPERBOLIC_API_ENDPOINT", "https://api.example.com/v1/image/generation")
    monkeypatch.setenv("CORS_PROXY", "https://proxy.example.com/")
    monkeypatch.setenv("APP_ORIGIN", "http://localhost:5173")
    monkeypatch.setenv("MAX_UPLOAD_BYTES", str(1024 * 1024))
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clear_sessions():
    session_store.clear()
    yield
    session_store.clear()


@pytest.fixture
def form_state():
    return FormState()


@pytest.fixture
def png_bytes():
    return make_image_bytes()


@pytest.fixture
def client():
    """Create test client for HTTP requests."""
    from cryptosi.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client

