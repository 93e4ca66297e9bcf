"""Shared test fixtures for the restcli test suite.

Provides common fixtures used across unit tests: sample command
definitions, registries, completion records and mock runners.
"""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from restcli.domain.models import (
    CommandDefinition,
    CompletionRecord,
    OutputPolicy,
)
from restcli.engine.invoker import CommandEngine
from restcli.engine.registry import CommandRegistry
from restcli.engine.runner import ProcessRunner


# ---------------------------------------------------------------------------
# Command Definition Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def echo_command() -> CommandDefinition:
    """The ``echo`` command passing the ``text`` parameter through."""
    return CommandDefinition(
        id="echo",
        executable="echo",
        argument_templates=("%PARAM{text}%",),
    )


@pytest.fixture
def json_error_command() -> CommandDefinition:
    """A command whose errors are reported as a JSON object."""
    return CommandDefinition(
        id="fails",
        executable="false",
        output_policy=OutputPolicy(on_error={"code": "%CODE%", "msg": "%STDERR%"}),
    )


@pytest.fixture
def registry(
    echo_command: CommandDefinition, json_error_command: CommandDefinition
) -> CommandRegistry:
    return CommandRegistry([echo_command, json_error_command])


# ---------------------------------------------------------------------------
# Completion Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def ok_completion() -> CompletionRecord:
    return CompletionRecord(stdout="hi\n", stderr="", exit_code=0)


@pytest.fixture
def error_completion() -> CompletionRecord:
    return CompletionRecord(stdout="", stderr="boom", exit_code=2)


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_runner(ok_completion: CompletionRecord) -> AsyncMock:
    """A mock ProcessRunner that completes successfully without spawning."""
    runner = AsyncMock(spec=ProcessRunner)
    runner.run.return_value = ok_completion
    return runner


@pytest.fixture
def engine(registry: CommandRegistry, mock_runner: AsyncMock) -> CommandEngine:
    return CommandEngine(registry, mock_runner, usage=["usage line"])


@pytest.fixture
def restore_logging():
    """Undo handler changes made by setup_logging()."""
    names = ("restcli", "uvicorn", "uvicorn.error", "uvicorn.access")
    saved = {
        name: (list(logging.getLogger(name).handlers), logging.getLogger(name).propagate)
        for name in names
    }
    yield
    for name, (handlers, propagate) in saved.items():
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            if handler not in handlers:
                handler.close()
        for handler in handlers:
            logger.addHandler(handler)
        logger.propagate = propagate
