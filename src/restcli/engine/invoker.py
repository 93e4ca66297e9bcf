"""Command engine: resolve, build, run, and render one invocation."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Sequence

from restcli.domain.models import (
    CompletionRecord,
    InvocationRequest,
    InvocationResult,
    RequestBinding,
)
from restcli.engine.builder import build
from restcli.engine.output import JSON_CONTENT_TYPE, JSON_INDENT, resolve_output
from restcli.engine.registry import CommandNotFoundError, CommandRegistry
from restcli.engine.runner import ProcessRunner

logger = logging.getLogger(__name__)


def error_payload(data: object, error: str) -> InvocationResult:
    """A ``{"data": ..., "error": ...}`` JSON result."""
    body = json.dumps({"data": data, "error": error}, indent=JSON_INDENT, ensure_ascii=False)
    return InvocationResult(body=body, content_type=JSON_CONTENT_TYPE)


class CommandEngine:
    """Entry point the HTTP front hands requests to.

    Every invocation-local failure becomes a response payload; nothing
    raised here escapes to the caller.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        runner: ProcessRunner | None = None,
        usage: Sequence[str] = (),
    ) -> None:
        self._registry = registry
        self._runner = runner or ProcessRunner()
        self._usage = list(usage)

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    def list_commands(self) -> list[str]:
        return self._registry.ids()

    async def invoke(self, request: InvocationRequest) -> InvocationResult:
        try:
            command = self._registry.resolve(request.command_id)
        except CommandNotFoundError as e:
            logger.info("Rejected request: %s", e)
            if e.malformed:
                return error_payload(
                    self._usage,
                    f"Unrecognized URI, or missing/unsupported command ID: {request.command_id}",
                )
            return error_payload("", f"Unrecognized command ID {request.command_id}")

        binding = RequestBinding(parameters=request.parameters, body=request.body)
        built = build(command, binding)
        logger.debug("Running %s: %s %s", command.id, command.executable, list(built.args))

        started = time.monotonic()
        outcome = await self._runner.run(
            command.executable, built.args, built.stdin, command.spawn_options
        )
        elapsed = time.monotonic() - started

        if isinstance(outcome, CompletionRecord):
            logger.info(
                "Command %s exited with code %d in %.3fs (%d bytes stdout, %d bytes stderr)",
                command.id, outcome.exit_code, elapsed, len(outcome.stdout), len(outcome.stderr),
            )
        else:
            logger.warning("Command %s failed to start: %s", command.id, outcome.message)

        return resolve_output(
            command.output_policy, outcome, request.content_type_override, binding
        )
