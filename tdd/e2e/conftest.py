"""
E2E Test Fixtures - a real uvicorn server driven by the git command line client.

The server runs in a subprocess with its repositories and clones roots in a
temporary directory. Tests build descriptors with the same Settings so the
lifecycle operations and the HTTP endpoints share one filesystem.

Usage:
    pytest tdd/e2e/ -v
"""

import os
import shutil
import socket
import subprocess
import sys
import tempfile
import time
from pathlib import Path
from typing import Generator

import httpx
import pytest

# Add backend to path
backend_path = Path(__file__).parent.parent.parent / "backend"
sys.path.insert(0, str(backend_path))

from githost.config import Settings


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

BACKEND_HOST = "127.0.0.1"

# Timeouts
BACKEND_STARTUP_TIMEOUT = 30  # seconds


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((BACKEND_HOST, 0))
        return sock.getsockname()[1]


def wait_for_backend(url: str, timeout: int = BACKEND_STARTUP_TIMEOUT) -> bool:
    """Wait for backend to be ready."""
    start = time.time()
    while time.time() - start < timeout:
        try:
            response = httpx.get(f"{url}/health", timeout=2)
            if response.status_code == 200:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(0.5)
    return False


# -----------------------------------------------------------------------------
# Backend Server Fixture
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def e2e_settings() -> Generator[Settings, None, None]:
    """Settings shared by the server process and the tests."""
    temp_dir = Path(tempfile.mkdtemp(prefix="githost_e2e_")).resolve()
    port = free_port()
    yield Settings(
        repositories_dir=temp_dir / "repositories",
        clones_dir=temp_dir / "clones",
        base_url=f"http://{BACKEND_HOST}:{port}",
        default_branch="main",
        host=BACKEND_HOST,
        port=port,
    )
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(scope="session")
def e2e_backend(e2e_settings) -> Generator[str, None, None]:
    """Start a real backend server for E2E tests.

    Yields:
        str: The backend URL
    """
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    env = os.environ.copy()
    env["GITHOST_REPOSITORIES_DIR"] = str(e2e_settings.repositories_dir)
    env["GITHOST_CLONES_DIR"] = str(e2e_settings.clones_dir)
    env["GITHOST_BASE_URL"] = e2e_settings.base_url
    env["GITHOST_DEFAULT_BRANCH"] = e2e_settings.default_branch

    # Server output goes to a file so a long run cannot fill an unread pipe
    log_path = e2e_settings.repositories_dir.parent / "server.log"
    log_file = open(log_path, "wb")
    process = subprocess.Popen(
        [
            sys.executable, "-m", "uvicorn",
            "githost.main:app",
            "--host", BACKEND_HOST,
            "--port", str(e2e_settings.port),
            "--log-level", "warning",
        ],
        cwd=str(backend_path),
        env=env,
        stdout=log_file,
        stderr=subprocess.STDOUT,
    )

    try:
        if not wait_for_backend(e2e_settings.base_url):
            process.terminate()
            process.wait(timeout=5)
            log_file.flush()
            raise RuntimeError(
                f"Backend failed to start:\n"
                f"{log_path.read_text(errors='replace')}"
            )

        yield e2e_settings.base_url

    finally:
        log_file.close()
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
