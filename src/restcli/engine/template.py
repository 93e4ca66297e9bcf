"""Template expansion over request and process-result bindings.

Placeholder grammar::

    %PARAM{name}%        request parameter, empty when absent
    %PARAM{name:split}%  same value; the builder splices it as several arguments
    %BODY%               raw request body, empty when absent
    %STDOUT%             accumulated standard output  (output templates only)
    %STDERR%             accumulated standard error   (output templates only)
    %CODE%               exit code                    (output templates only)

Expansion is pure and never raises for missing values.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from restcli.domain.models import (
    CompletionRecord,
    Leaf,
    Map,
    RequestBinding,
    Scalar,
    Seq,
    Template,
)

SPLIT_MODIFIER = ":split"

PLACEHOLDER_RE = re.compile(r"%PARAM\{([^}]*)\}%|%(BODY|STDOUT|STDERR|CODE)%")
SPLIT_PLACEHOLDER_RE = re.compile(r"%PARAM\{([^}]*):split\}%")


class Bindings(BaseModel):
    """Named values available to one expansion.

    Process results are None outside output templates, which leaves
    their placeholders as literal text.
    """

    model_config = ConfigDict(frozen=True)

    parameters: dict[str, str] = Field(default_factory=dict)
    body: str | None = None
    stdout: str | None = None
    stderr: str | None = None
    code: int | None = None

    @classmethod
    def for_request(cls, binding: RequestBinding) -> Bindings:
        return cls(parameters=binding.parameters, body=binding.body)

    @classmethod
    def for_completion(
        cls, completion: CompletionRecord, binding: RequestBinding | None = None
    ) -> Bindings:
        binding = binding or RequestBinding()
        return cls(
            parameters=binding.parameters,
            body=binding.body,
            stdout=completion.stdout,
            stderr=completion.stderr,
            code=completion.exit_code,
        )


def parameter_name(raw: str) -> str:
    """Strip the ``:split`` modifier from a placeholder name."""
    if raw.endswith(SPLIT_MODIFIER):
        return raw[: -len(SPLIT_MODIFIER)]
    return raw


def expand_text(text: str, bindings: Bindings) -> str:
    """Expand every placeholder in a plain string, left to right."""

    def _substitute(match: re.Match[str]) -> str:
        param, keyword = match.group(1), match.group(2)
        if param is not None:
            return bindings.parameters.get(parameter_name(param), "")
        if keyword == "BODY":
            return bindings.body or ""
        if keyword == "STDOUT":
            value: str | int | None = bindings.stdout
        elif keyword == "STDERR":
            value = bindings.stderr
        else:
            value = bindings.code
        if value is None:
            return match.group(0)
        return str(value)

    return PLACEHOLDER_RE.sub(_substitute, text)


def expand(template: Template | str, bindings: Bindings) -> Any:
    """Expand a string or structured template.

    Sequences map element-wise, mappings map value-wise, and
    non-string leaves pass through unchanged.
    """
    if isinstance(template, str):
        return expand_text(template, bindings)
    if isinstance(template, Leaf):
        return expand_text(template.text, bindings)
    if isinstance(template, Seq):
        return [expand(item, bindings) for item in template.items]
    if isinstance(template, Map):
        return {key: expand(value, bindings) for key, value in template.entries.items()}
    if isinstance(template, Scalar):
        return template.value
    return template


def split_placeholders(text: str) -> list[str]:
    """Names of the ``%PARAM{name:split}%`` placeholders in ``text``, in order."""
    return SPLIT_PLACEHOLDER_RE.findall(text)
