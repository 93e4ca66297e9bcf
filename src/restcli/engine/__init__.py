"""Command-invocation engine for restcli.

Resolves a command ID against the registry, expands templates into an
argument vector and stdin payload, runs the process, and maps its
outcome to a response body and content type.

Public API:
    CommandEngine -- Facade used by the HTTP front
    CommandRegistry -- Immutable command lookup
    ProcessRunner -- Async child process execution
"""

from restcli.engine.invoker import CommandEngine
from restcli.engine.registry import CommandNotFoundError, CommandRegistry
from restcli.engine.runner import ProcessRunner

__all__ = ["CommandEngine", "CommandNotFoundError", "CommandRegistry", "ProcessRunner"]
