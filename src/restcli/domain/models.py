"""Core domain models for the restcli system.

These models represent the data flowing through one invocation: the
operator-declared command definitions loaded at startup, the request
binding built from an HTTP request, the outcome of the child process,
and the response payload chosen for it.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

COMMAND_ID_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9_-]*$"


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class Leaf(BaseModel):
    """A string template; may contain placeholders."""

    model_config = ConfigDict(frozen=True)

    text: str


class Scalar(BaseModel):
    """A non-string leaf (number, boolean, null) that expands to itself."""

    model_config = ConfigDict(frozen=True)

    value: Union[bool, int, float, None] = None


class Seq(BaseModel):
    """An ordered sequence of templates, expanded element-wise."""

    model_config = ConfigDict(frozen=True)

    items: tuple["Template", ...] = ()


class Map(BaseModel):
    """A key-value mapping of templates, expanded value-wise."""

    model_config = ConfigDict(frozen=True)

    entries: dict[str, "Template"] = Field(default_factory=dict)


Template = Union[Leaf, Seq, Map, Scalar]

Seq.model_rebuild()
Map.model_rebuild()


def to_template(raw: Any) -> Template:
    """Convert a raw configuration value (str, list, dict, scalar) to a Template."""
    if isinstance(raw, (Leaf, Seq, Map, Scalar)):
        return raw
    if isinstance(raw, str):
        return Leaf(text=raw)
    if isinstance(raw, (list, tuple)):
        return Seq(items=tuple(to_template(item) for item in raw))
    if isinstance(raw, dict):
        return Map(entries={str(key): to_template(value) for key, value in raw.items()})
    if raw is None or isinstance(raw, (bool, int, float)):
        return Scalar(value=raw)
    raise ValueError(f"Unsupported template value of type {type(raw).__name__}")


def is_structured(template: Template | None) -> bool:
    """True for templates that produce a structured (non-string) value."""
    return isinstance(template, (Seq, Map))


# ---------------------------------------------------------------------------
# Command definitions (immutable, loaded once)
# ---------------------------------------------------------------------------


class SpawnOptions(BaseModel):
    """Process spawn options passed through to the child process."""

    model_config = ConfigDict(frozen=True)

    cwd: str | None = Field(default=None, description="Working directory of the child")
    env: dict[str, str] = Field(
        default_factory=dict, description="Variables merged over the server environment"
    )
    timeout: float | None = Field(
        default=None, gt=0, description="Seconds before the child is killed; None waits forever"
    )


class OutputPolicy(BaseModel):
    """Declarative rules choosing the response body and content type."""

    model_config = ConfigDict(frozen=True)

    on_success: Template | None = None
    on_error: Template | None = None
    content_type: str | None = None

    @field_validator("on_success", "on_error", mode="before")
    @classmethod
    def _parse_template(cls, value: Any) -> Template | None:
        if value is None:
            return None
        return to_template(value)


class CommandDefinition(BaseModel):
    """One invocable external program and its templating/output rules."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(pattern=COMMAND_ID_PATTERN, description="Registry key of the command")
    executable: str = Field(min_length=1, description="Program path or name")
    argument_templates: tuple[str, ...] = Field(default=())
    stdin_template: str | None = Field(default=None)
    spawn_options: SpawnOptions = Field(default_factory=SpawnOptions)
    output_policy: OutputPolicy = Field(default_factory=OutputPolicy)
    description: str = Field(default="")


# ---------------------------------------------------------------------------
# Per-invocation records
# ---------------------------------------------------------------------------


class RequestBinding(BaseModel):
    """Parameters and optional raw body supplied by one request."""

    model_config = ConfigDict(frozen=True)

    parameters: dict[str, str] = Field(default_factory=dict)
    body: str | None = None


class BuiltInvocation(BaseModel):
    """Concrete argument vector and stdin payload for one spawn."""

    model_config = ConfigDict(frozen=True)

    args: tuple[str, ...] = ()
    stdin: str | None = None


class CompletionRecord(BaseModel):
    """Captured outcome of a process that ran to termination."""

    model_config = ConfigDict(frozen=True)

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0


class SpawnFailure(BaseModel):
    """The executable could not be launched at all."""

    model_config = ConfigDict(frozen=True)

    message: str


class InvocationRequest(BaseModel):
    """Input handed to the engine by the HTTP front."""

    command_id: str
    parameters: dict[str, str] = Field(default_factory=dict)
    body: str | None = None
    content_type_override: str | None = None


class InvocationResult(BaseModel):
    """Response body and MIME type chosen for one invocation."""

    model_config = ConfigDict(frozen=True)

    body: str
    content_type: str
