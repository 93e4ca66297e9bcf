"""Tests for the ProcessRunner using real child processes."""

from __future__ import annotations

import asyncio

import pytest

from restcli.domain.models import CompletionRecord, SpawnFailure, SpawnOptions
from restcli.engine.runner import ProcessRunner, encode_payload


@pytest.fixture
def runner() -> ProcessRunner:
    return ProcessRunner()


class TestRunCompletion:
    @pytest.mark.asyncio
    async def test_captures_stdout(self, runner: ProcessRunner) -> None:
        result = await runner.run("echo", ["hi"])
        assert result == CompletionRecord(stdout="hi\n", stderr="", exit_code=0)

    @pytest.mark.asyncio
    async def test_captures_stderr_and_exit_code(self, runner: ProcessRunner) -> None:
        result = await runner.run("sh", ["-c", "echo boom >&2; exit 2"])
        assert isinstance(result, CompletionRecord)
        assert result.stderr == "boom\n"
        assert result.exit_code == 2

    @pytest.mark.asyncio
    async def test_arguments_are_not_shell_interpreted(self, runner: ProcessRunner) -> None:
        result = await runner.run("echo", ["$(whoami); ls", "*"])
        assert isinstance(result, CompletionRecord)
        assert result.stdout == "$(whoami); ls *\n"

    @pytest.mark.asyncio
    async def test_writes_stdin(self, runner: ProcessRunner) -> None:
        result = await runner.run("cat", [], stdin="line one\nline two\n")
        assert isinstance(result, CompletionRecord)
        assert result.stdout == "line one\nline two\n"

    @pytest.mark.asyncio
    async def test_stdin_closed_when_absent(self, runner: ProcessRunner) -> None:
        result = await asyncio.wait_for(runner.run("cat", []), timeout=10)
        assert isinstance(result, CompletionRecord)
        assert result.stdout == ""
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_child_ignoring_stdin(self, runner: ProcessRunner) -> None:
        result = await runner.run("true", [], stdin="x" * 1_000_000)
        assert isinstance(result, CompletionRecord)
        assert result.exit_code == 0

    @pytest.mark.asyncio
    async def test_large_output(self, runner: ProcessRunner) -> None:
        result = await runner.run("sh", ["-c", "head -c 500000 /dev/zero | tr '\\0' a"])
        assert isinstance(result, CompletionRecord)
        assert len(result.stdout) == 500000


class TestRunSpawnOptions:
    @pytest.mark.asyncio
    async def test_working_directory(self, runner: ProcessRunner, tmp_path) -> None:
        result = await runner.run("pwd", [], spawn_options=SpawnOptions(cwd=str(tmp_path)))
        assert isinstance(result, CompletionRecord)
        assert result.stdout.strip() == str(tmp_path.resolve())

    @pytest.mark.asyncio
    async def test_environment_merged(self, runner: ProcessRunner) -> None:
        options = SpawnOptions(env={"RESTCLI_TEST_VALUE": "42"})
        result = await runner.run("sh", ["-c", "echo $RESTCLI_TEST_VALUE"], spawn_options=options)
        assert isinstance(result, CompletionRecord)
        assert result.stdout == "42\n"

    @pytest.mark.asyncio
    async def test_timeout_kills_child(self, runner: ProcessRunner) -> None:
        options = SpawnOptions(timeout=0.2)
        result = await asyncio.wait_for(
            runner.run("sleep", ["30"], spawn_options=options), timeout=10
        )
        assert isinstance(result, CompletionRecord)
        assert "timed out" in result.stderr
        assert result.exit_code != 0


class TestRunSpawnFailure:
    @pytest.mark.asyncio
    async def test_missing_executable(self, runner: ProcessRunner) -> None:
        result = await runner.run("/nonexistent/restcli-missing-binary", [])
        assert isinstance(result, SpawnFailure)
        assert "restcli-missing-binary" in result.message

    @pytest.mark.asyncio
    async def test_not_executable(self, runner: ProcessRunner, tmp_path) -> None:
        script = tmp_path / "script.sh"
        script.write_text("#!/bin/sh\necho hi\n")
        script.chmod(0o644)
        result = await runner.run(str(script), [])
        assert isinstance(result, SpawnFailure)

    @pytest.mark.asyncio
    async def test_null_byte_in_argument(self, runner: ProcessRunner) -> None:
        result = await runner.run("echo", ["a\x00b"])
        assert isinstance(result, SpawnFailure)
        assert "null byte" in result.message

    @pytest.mark.asyncio
    async def test_null_byte_in_executable(self, runner: ProcessRunner) -> None:
        result = await runner.run("ec\x00ho", [])
        assert isinstance(result, SpawnFailure)


class TestStdinEncoding:
    @pytest.mark.asyncio
    async def test_surrogate_escaped_bytes_round_trip(self, runner: ProcessRunner) -> None:
        result = await runner.run("od", ["-An", "-tx1"], stdin="a\udcffb\n")
        assert isinstance(result, CompletionRecord)
        assert result.stdout.split() == ["61", "ff", "62", "0a"]

    @pytest.mark.asyncio
    async def test_lone_high_surrogate_replaced(self, runner: ProcessRunner) -> None:
        result = await runner.run("cat", [], stdin="a\ud800b\n")
        assert isinstance(result, CompletionRecord)
        assert result.stdout == "a?b\n"
        assert result.exit_code == 0

    def test_encode_payload(self) -> None:
        assert encode_payload("a\udcff") == b"a\xff"
        assert encode_payload("é") == "é".encode("utf-8")


class TestOutputLimit:
    @pytest.mark.asyncio
    async def test_output_truncated_to_limit(self) -> None:
        runner = ProcessRunner(max_output_bytes=10)
        result = await runner.run("sh", ["-c", "head -c 100000 /dev/zero | tr '\\0' a; echo err >&2"])
        assert isinstance(result, CompletionRecord)
        assert result.stdout == "a" * 10
        assert result.stderr == "err\n"
        assert result.exit_code == 0


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_invocations_run_concurrently(self, runner: ProcessRunner) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        results = await asyncio.gather(
            *(runner.run("sh", ["-c", f"sleep 0.5; echo {i}"]) for i in range(4))
        )
        elapsed = loop.time() - started
        assert [r.stdout for r in results] == [f"{i}\n" for i in range(4)]
        assert elapsed < 1.8
