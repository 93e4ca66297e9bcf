"""Response selection from a command's output policy.

Body template precedence:

1. Spawn failure: ``on_error`` if configured, else the built-in error
   template, with ``%CODE%`` bound to 1 and ``%STDERR%`` to the failure.
2. Non-empty stderr and ``on_error`` configured: ``on_error``.
3. ``on_success`` if configured.
4. Non-empty stderr: the built-in error template; otherwise ``%STDOUT%``.

Content type precedence: request override, then the policy's
``content_type``, then ``application/json`` for structured templates,
then ``text/plain``.
"""

from __future__ import annotations

import json
from typing import Any

from restcli.domain.models import (
    CompletionRecord,
    InvocationResult,
    Leaf,
    OutputPolicy,
    RequestBinding,
    SpawnFailure,
    Template,
    is_structured,
)
from restcli.engine.template import Bindings, expand

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain"
JSON_INDENT = 4

SPAWN_FAILURE_CODE = 1
ERROR_TEMPLATE = Leaf(text="Error: %STDERR%\nCode: %CODE%")
STDOUT_TEMPLATE = Leaf(text="%STDOUT%")


def as_completion(outcome: CompletionRecord | SpawnFailure) -> CompletionRecord:
    """Synthesize a completion record for a spawn failure."""
    if isinstance(outcome, SpawnFailure):
        return CompletionRecord(stdout="", stderr=outcome.message, exit_code=SPAWN_FAILURE_CODE)
    return outcome


def select_template(
    policy: OutputPolicy, outcome: CompletionRecord | SpawnFailure
) -> Template:
    if isinstance(outcome, SpawnFailure):
        return policy.on_error if policy.on_error is not None else ERROR_TEMPLATE
    if outcome.stderr and policy.on_error is not None:
        return policy.on_error
    if policy.on_success is not None:
        return policy.on_success
    if outcome.stderr:
        return ERROR_TEMPLATE
    return STDOUT_TEMPLATE


def select_content_type(
    policy: OutputPolicy, template: Template, override: str | None = None
) -> str:
    if override:
        return override
    if policy.content_type:
        return policy.content_type
    if is_structured(template):
        return JSON_CONTENT_TYPE
    return TEXT_CONTENT_TYPE


def is_json_content_type(content_type: str) -> bool:
    return content_type.split(";", 1)[0].strip().lower() == JSON_CONTENT_TYPE


def serialize(value: Any, content_type: str) -> str:
    if is_json_content_type(content_type) or not isinstance(value, str):
        return json.dumps(value, indent=JSON_INDENT, ensure_ascii=False)
    return value


def resolve_output(
    policy: OutputPolicy,
    outcome: CompletionRecord | SpawnFailure,
    content_type_override: str | None = None,
    binding: RequestBinding | None = None,
) -> InvocationResult:
    """Pick and materialize the response body and content type.

    Pure: the same inputs always give byte-identical results.
    """
    template = select_template(policy, outcome)
    content_type = select_content_type(policy, template, content_type_override)
    bindings = Bindings.for_completion(as_completion(outcome), binding)
    value = expand(template, bindings)
    return InvocationResult(body=serialize(value, content_type), content_type=content_type)
