"""
Unit tests for the process bridge.

Python itself is used as the subprocess so these tests do not need git.
"""
import os
import sys

import pytest

from githost.exceptions import GitProcessError
from githost.services.process import DebugFlags, build_environment, run_git, spawn_git


PRINT_BOTH = "import sys; sys.stdout.write('out'); sys.stderr.write('err')"
PRINT_TRACE_ENV = "import os; print(os.environ.get('GIT_TRACE', '-'), os.environ.get('GIT_TRACE_PACKET', '-'))"


class TestDebugFlags:

    def test_no_flags_no_variables(self):
        assert DebugFlags().environment() == {}

    def test_each_flag_maps_to_one_variable(self):
        assert DebugFlags(trace_packet=True).environment() == {"GIT_TRACE_PACKET": "1"}
        assert DebugFlags(trace=True).environment() == {"GIT_TRACE": "1"}
        assert DebugFlags(curl_verbose=True).environment() == {"GIT_CURL_VERBOSE": "1"}

    def test_from_debug_sets_all(self):
        flags = DebugFlags.from_debug(True)
        assert flags == DebugFlags(trace_packet=True, trace=True, curl_verbose=True)
        assert DebugFlags.from_debug(False) == DebugFlags()


class TestBuildEnvironment:

    def test_keeps_server_environment(self, monkeypatch):
        monkeypatch.setenv("GITHOST_TEST_MARKER", "present")
        env = build_environment(DebugFlags())
        assert env["GITHOST_TEST_MARKER"] == "present"
        assert env["PATH"] == os.environ["PATH"]

    def test_extra_variables_applied_last(self):
        env = build_environment(DebugFlags(trace=True), {"GIT_PROTOCOL": "version=2", "GIT_TRACE": "0"})
        assert env["GIT_PROTOCOL"] == "version=2"
        assert env["GIT_TRACE"] == "0"

    def test_does_not_mutate_os_environ(self, monkeypatch):
        monkeypatch.delenv("GIT_TRACE", raising=False)
        build_environment(DebugFlags(trace=True))
        assert "GIT_TRACE" not in os.environ


class TestRunGit:

    def test_captures_stdout_and_stderr_separately(self):
        result = run_git([sys.executable, "-c", PRINT_BOTH])
        assert result.stdout == "out"
        assert result.stderr == "err"

    def test_injects_debug_variables(self, monkeypatch):
        monkeypatch.delenv("GIT_TRACE_PACKET", raising=False)
        result = run_git([sys.executable, "-c", PRINT_TRACE_ENV], debug=DebugFlags(trace=True))
        assert result.stdout.split() == ["1", "-"]

    def test_runs_in_cwd(self, tmp_path):
        result = run_git([sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path)
        assert os.path.samefile(result.stdout.strip(), tmp_path)

    def test_non_zero_exit_raises_with_stderr(self):
        with pytest.raises(GitProcessError) as exc_info:
            run_git([sys.executable, "-c", "import sys; sys.stderr.write('fatal: boom\\n'); sys.exit(3)"])
        assert exc_info.value.returncode == 3
        assert exc_info.value.stderr == "fatal: boom\n"
        assert "fatal: boom" in str(exc_info.value)

    def test_missing_executable_raises(self):
        with pytest.raises(GitProcessError) as exc_info:
            run_git(["definitely-not-a-real-executable-xyz"])
        assert exc_info.value.returncode is None

    def test_missing_cwd_raises(self, tmp_path):
        with pytest.raises(GitProcessError):
            run_git([sys.executable, "-c", "pass"], cwd=tmp_path / "missing")


class TestSpawnGit:

    async def test_streams_stdout_in_chunks(self, tmp_path):
        script = "import sys; sys.stdout.buffer.write(b'x' * 200000)"
        process = await spawn_git([sys.executable, "-c", script], cwd=tmp_path)
        received = b""
        while True:
            chunk = await process.read()
            if not chunk:
                break
            assert len(chunk) <= process.chunk_size
            received += chunk
        assert await process.wait() == 0
        assert received == b"x" * 200000

    async def test_stdin_round_trip(self, tmp_path):
        script = "import sys; sys.stdout.buffer.write(sys.stdin.buffer.read().upper())"
        process = await spawn_git([sys.executable, "-c", script], cwd=tmp_path, stdin=True)
        await process.write(b"hello ")
        await process.write(b"world")
        process.close_stdin()
        output = b""
        while True:
            chunk = await process.read()
            if not chunk:
                break
            output += chunk
        await process.wait()
        assert output == b"HELLO WORLD"

    async def test_extra_env_is_injected(self, tmp_path):
        script = "import os; print(os.environ['GIT_PROTOCOL'])"
        process = await spawn_git(
            [sys.executable, "-c", script], cwd=tmp_path, extra_env={"GIT_PROTOCOL": "version=2"}
        )
        output = await process.read()
        await process.wait()
        assert output.strip() == b"version=2"

    async def test_wait_raises_with_buffered_stderr(self, tmp_path):
        script = "import sys; sys.stderr.write('fatal: not a git repository'); sys.exit(128)"
        process = await spawn_git([sys.executable, "-c", script], cwd=tmp_path)
        assert await process.read() == b""
        with pytest.raises(GitProcessError) as exc_info:
            await process.wait()
        assert exc_info.value.returncode == 128
        assert "not a git repository" in exc_info.value.stderr

    async def test_missing_cwd_raises(self, tmp_path):
        with pytest.raises(GitProcessError):
            await spawn_git([sys.executable, "-c", "pass"], cwd=tmp_path / "missing")

    async def test_terminate_kills_running_process(self, tmp_path):
        process = await spawn_git([sys.executable, "-c", "import time; time.sleep(60)"], cwd=tmp_path)
        assert process.returncode is None
        await process.terminate()
        assert process.returncode is not None
        assert process.returncode != 0

    async def test_terminate_after_exit_is_noop(self, tmp_path):
        process = await spawn_git([sys.executable, "-c", "pass"], cwd=tmp_path)
        await process.wait()
        await process.terminate()
        assert process.returncode == 0
