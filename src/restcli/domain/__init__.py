"""Domain models for restcli.

This package contains the command definitions, template variants and
per-invocation records used throughout the system. All models use
Pydantic v2 for validation and serialization.
"""

from restcli.domain.models import (
    BuiltInvocation,
    CommandDefinition,
    CompletionRecord,
    InvocationRequest,
    InvocationResult,
    Leaf,
    Map,
    OutputPolicy,
    RequestBinding,
    Scalar,
    Seq,
    SpawnFailure,
    SpawnOptions,
    Template,
    to_template,
)

__all__ = [
    "BuiltInvocation",
    "CommandDefinition",
    "CompletionRecord",
    "InvocationRequest",
    "InvocationResult",
    "Leaf",
    "Map",
    "OutputPolicy",
    "RequestBinding",
    "Scalar",
    "Seq",
    "SpawnFailure",
    "SpawnOptions",
    "Template",
    "to_template",
]
