"""
Process bridge for git invocations.

Two execution styles are provided:
- run_git(): buffered, for lifecycle commands whose output is a short status
- spawn_git(): asyncio subprocess whose stdout is consumed incrementally, for
  transport commands whose output is repository content

Environment injection happens only in build_environment().
"""

import asyncio
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from githost.exceptions import GitProcessError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DebugFlags:
    """Diagnostic switches forwarded to git through its environment."""
    trace_packet: bool = False
    trace: bool = False
    curl_verbose: bool = False

    @classmethod
    def from_debug(cls, debug: bool) -> "DebugFlags":
        return cls(trace_packet=debug, trace=debug, curl_verbose=debug)

    def environment(self) -> dict[str, str]:
        env = {}
        if self.trace_packet:
            env["GIT_TRACE_PACKET"] = "1"
        if self.trace:
            env["GIT_TRACE"] = "1"
        if self.curl_verbose:
            env["GIT_CURL_VERBOSE"] = "1"
        return env


def build_environment(debug: DebugFlags, extra: dict[str, str] | None = None) -> dict[str, str]:
    """Server environment plus diagnostic variables plus any extra variables."""
    env = os.environ.copy()
    env.update(debug.environment())
    if extra:
        env.update(extra)
    return env


def run_git(
    args: list[str],
    cwd: Path | None = None,
    debug: DebugFlags = DebugFlags(),
) -> subprocess.CompletedProcess:
    """
    Run a command to completion with stdout and stderr buffered in memory.

    Args:
        args: Program and arguments, e.g. ["git", "init", "--bare", path]
        cwd: Working directory for the command
        debug: Diagnostic flags for environment injection

    Returns:
        The completed process with text stdout/stderr

    Raises:
        GitProcessError: If the command cannot be started or exits non-zero
    """
    logger.debug(f"running {args} in {cwd}")
    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            env=build_environment(debug),
            capture_output=True,
            encoding="utf-8",
        )
    except OSError as e:
        raise GitProcessError(args, None, str(e), message=f"could not start {args[0]}") from e

    if result.stdout:
        logger.debug(result.stdout)
    if result.returncode != 0:
        logger.error(f"{' '.join(args[:2])} exited with {result.returncode}: {result.stderr.strip()}")
        raise GitProcessError(args, result.returncode, result.stderr)
    return result


class GitProcess:
    """
    A running git subprocess with incrementally readable stdout.

    stderr is drained in the background so a chatty process (GIT_TRACE)
    cannot fill the pipe and stall; it is only surfaced when the process
    exits non-zero.
    """

    chunk_size = 65536

    def __init__(self, process: asyncio.subprocess.Process, args: list[str]):
        self.process = process
        self.args = args
        self._stderr_task = asyncio.create_task(process.stderr.read())

    @property
    def returncode(self) -> int | None:
        return self.process.returncode

    async def read(self) -> bytes:
        """Read the next chunk of stdout; b"" means end of output."""
        return await self.process.stdout.read(self.chunk_size)

    async def write(self, data: bytes) -> None:
        """Write to stdin, waiting for the pipe to drain."""
        self.process.stdin.write(data)
        await self.process.stdin.drain()

    def close_stdin(self) -> None:
        if self.process.stdin is not None and not self.process.stdin.is_closing():
            self.process.stdin.close()

    async def wait(self) -> int:
        """
        Wait for exit and collect stderr.

        Raises:
            GitProcessError: If the process exited non-zero
        """
        returncode = await self.process.wait()
        stderr = (await self._stderr_task).decode("utf-8", errors="replace")
        if stderr:
            logger.debug(stderr)
        if returncode != 0:
            logger.error(f"{' '.join(self.args[:2])} exited with {returncode}: {stderr.strip()}")
            raise GitProcessError(self.args, returncode, stderr)
        return returncode

    def kill(self) -> None:
        if self.process.returncode is None:
            logger.warning(f"killing {' '.join(self.args[:2])} (pid {self.process.pid})")
            try:
                self.process.kill()
            except ProcessLookupError:
                pass

    async def terminate(self) -> None:
        """Kill the process if it is still running and reap it."""
        if self.process.returncode is None:
            self.kill()
            await self.process.wait()
        if not self._stderr_task.done():
            self._stderr_task.cancel()


async def spawn_git(
    args: list[str],
    cwd: Path,
    debug: DebugFlags = DebugFlags(),
    extra_env: dict[str, str] | None = None,
    stdin: bool = False,
) -> GitProcess:
    """
    Start a command with stdout/stderr piped and stdin piped or closed.

    Raises:
        GitProcessError: If the command cannot be started (missing
            executable or working directory)
    """
    logger.debug(f"spawning {args} in {cwd}")
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=cwd,
            env=build_environment(debug, extra_env),
            stdin=asyncio.subprocess.PIPE if stdin else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise GitProcessError(args, None, str(e), message=f"could not start {' '.join(args[:2])}") from e
    return GitProcess(process, args)
