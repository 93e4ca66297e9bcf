"""Argument vector and stdin construction for one invocation.

Missing parameters degrade to empty strings. An argument template is
dropped when it expands to nothing or when every placeholder in it
expanded to nothing, which is how optional flags are written in
configuration::

    argument_templates:
      - "-sh"                       # literal, always passed
      - "--limit=%PARAM{limit}%"    # omitted unless ?limit= is given
      - "%PARAM{files:split}%"      # one argument per whitespace-separated word
"""

from __future__ import annotations

from restcli.domain.models import BuiltInvocation, CommandDefinition, RequestBinding
from restcli.engine.template import PLACEHOLDER_RE, Bindings, expand_text, split_placeholders


def expand_argument(template: str, bindings: Bindings) -> str | None:
    """Expand one argument template; None when the argument is omitted."""
    substituted = [expand_text(m.group(0), bindings) for m in PLACEHOLDER_RE.finditer(template)]
    if substituted and not any(substituted):
        return None
    return expand_text(template, bindings) or None


def build_arguments(templates: tuple[str, ...] | list[str], bindings: Bindings) -> list[str]:
    """Expand argument templates into a concrete argument vector."""
    args: list[str] = []
    for template in templates:
        split_names = split_placeholders(template)
        if split_names:
            # The split tokens replace the whole argument template.
            for name in split_names:
                args.extend(bindings.parameters.get(name, "").split())
            continue
        value = expand_argument(template, bindings)
        if value is not None:
            args.append(value)
    return args


def build_stdin(template: str | None, bindings: Bindings) -> str | None:
    """Expand the stdin template when a body was delivered.

    The payload always ends with a newline.
    """
    if template is None or bindings.body is None:
        return None
    payload = expand_text(template, bindings)
    if not payload.endswith("\n"):
        payload += "\n"
    return payload


def build(command: CommandDefinition, binding: RequestBinding) -> BuiltInvocation:
    """Turn a command definition plus request binding into args and stdin."""
    bindings = Bindings.for_request(binding)
    return BuiltInvocation(
        args=tuple(build_arguments(command.argument_templates, bindings)),
        stdin=build_stdin(command.stdin_template, bindings),
    )
