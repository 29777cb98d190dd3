"""
Pytest fixtures. The hosted backend is replaced by MockProviderStore.
"""
import os

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

import pytest
from fastapi.testclient import TestClient

from servicefinder.core.config import load_settings
from servicefinder.db.mock_db import MockProviderStore
from servicefinder.main import create_app


@pytest.fixture
def store():
    return MockProviderStore()


@pytest.fixture
def settings():
    return load_settings(SEARCH_DEBOUNCE_SECONDS=0.01, BACKGROUND_ROTATE_SECONDS=60.0)


@pytest.fixture
def client(settings, store):
    """Test client wired to the mock store."""
    with TestClient(create_app(settings=settings, store=store)) as test_client:
        yield test_client


@pytest.fixture
def base_url():
    """Base URL for API v1 endpoints."""
    return "/api/v1"
