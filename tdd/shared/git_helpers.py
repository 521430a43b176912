"""
Git and transport helpers for tests.

FakeTransport stands in for the git executable: each service call spawns a
small Python script instead, so the streaming response can be exercised
without git installed.
"""

import shutil
import subprocess
import sys
from pathlib import Path

import pytest

from githost.services.process import GitProcess, spawn_git
from githost.services.repository import HostedRepository
from githost.services.transport import Service


def git_available() -> bool:
    """Check if the git executable is on PATH."""
    return shutil.which("git") is not None


requires_git = pytest.mark.skipif(not git_available(), reason="git executable not available")


def run_git_cmd(args: list[str], cwd: Path | None = None) -> str:
    """Run a git command directly and return stdout, failing the test on error."""
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True)
    assert result.returncode == 0, f"git {' '.join(args)} failed: {result.stderr}"
    return result.stdout


# Echoes stdin to stdout
ECHO_SCRIPT = "import sys; sys.stdout.buffer.write(sys.stdin.buffer.read())"


class FakeTransport:
    """TransportExecutor that runs a Python script per call and records the calls."""

    def __init__(self, script: str = "print('ok')", cwd: Path | None = None):
        self.script = script
        self.cwd = cwd
        self.calls: list[tuple[str, str, Service]] = []

    async def _spawn(self, repo: HostedRepository, stdin: bool) -> GitProcess:
        return await spawn_git(
            [sys.executable, "-c", self.script],
            cwd=self.cwd or Path.cwd(),
            stdin=stdin,
        )

    async def advertise(self, repo: HostedRepository, service: Service) -> GitProcess:
        self.calls.append(("advertise", repo.full_name, service))
        return await self._spawn(repo, stdin=False)

    async def stateless_rpc(self, repo: HostedRepository, service: Service) -> GitProcess:
        self.calls.append(("stateless_rpc", repo.full_name, service))
        return await self._spawn(repo, stdin=True)
