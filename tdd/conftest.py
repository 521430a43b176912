"""
Root conftest.py - Shared fixtures for all test types.

This file is automatically loaded by pytest and provides:
- Temporary repositories/clones roots and a Settings record pointing at them
- FastAPI test client over the ASGI transport
- Marker assignment by test location
"""
import shutil
import sys
import tempfile
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Add backend and tdd to path for imports
backend_path = Path(__file__).parent.parent / "backend"
tdd_path = Path(__file__).parent
sys.path.insert(0, str(backend_path))
sys.path.insert(0, str(tdd_path))

from githost.config import Settings
from githost.main import create_app
from githost.services.repository import HostedRepository, new_hosted_repository


# -----------------------------------------------------------------------------
# Filesystem and Settings Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def temp_root():
    """Create a temporary directory for repositories and clones.

    Uses resolve() to get the full path and avoid Windows 8.3 short name issues.
    """
    temp_dir = Path(tempfile.mkdtemp()).resolve()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def settings(temp_root) -> Settings:
    """Settings rooted in the temporary directory."""
    return Settings(
        repositories_dir=temp_root / "repositories",
        clones_dir=temp_root / "clones",
        base_url="http://test",
        default_branch="main",
    )


@pytest.fixture
def hosted_repo(settings) -> HostedRepository:
    """Descriptor for a repository that has not been created yet."""
    return new_hosted_repository("test_org", "test_repo", settings)


# -----------------------------------------------------------------------------
# API Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def transport():
    """Transport executor for the app; None selects the real git transport."""
    return None


@pytest.fixture
def app(settings, transport):
    return create_app(settings, transport=transport)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for API testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# -----------------------------------------------------------------------------
# Marker-based fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _mark_test(request):
    """Automatically apply markers based on test location."""
    if "unit" in str(request.fspath):
        request.applymarker(pytest.mark.unit)
    elif "integration" in str(request.fspath):
        request.applymarker(pytest.mark.integration)
    elif "e2e" in str(request.fspath):
        request.applymarker(pytest.mark.e2e)
