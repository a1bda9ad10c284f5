"""Pytest configuration and shared fixtures."""

import pytest
from fastapi.testclient import TestClient

from taskboard.main import app


@pytest.fixture
def test_client() -> TestClient:
    """Provide FastAPI test client (lifespan not run; tests patch the record store)."""
    return TestClient(app)
