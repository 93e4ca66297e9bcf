"""Read-only registry of command definitions."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from restcli.domain.models import COMMAND_ID_PATTERN, CommandDefinition

logger = logging.getLogger(__name__)

_COMMAND_ID_RE = re.compile(COMMAND_ID_PATTERN)


class CommandRegistry:
    """Immutable command lookup built once at startup.

    Definitions are frozen models held behind a read-only mapping, so
    concurrent invocations can read them without synchronization.
    """

    def __init__(self, definitions: Iterable[CommandDefinition] = ()) -> None:
        commands: dict[str, CommandDefinition] = {}
        for definition in definitions:
            if definition.id in commands:
                raise ValueError(f"Duplicate command ID {definition.id}")
            commands[definition.id] = definition
        self._commands: Mapping[str, CommandDefinition] = MappingProxyType(commands)
        logger.debug("Registry holds %d commands", len(commands))

    @property
    def commands(self) -> Mapping[str, CommandDefinition]:
        return self._commands

    def ids(self) -> list[str]:
        return sorted(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, command_id: object) -> bool:
        return command_id in self._commands

    def resolve(self, command_id: str) -> CommandDefinition:
        """Return the definition registered under ``command_id``.

        Raises:
            CommandNotFoundError: If the ID is malformed or not registered.
        """
        if not is_valid_command_id(command_id):
            raise CommandNotFoundError(command_id, malformed=True)
        definition = self._commands.get(command_id)
        if definition is None:
            raise CommandNotFoundError(command_id)
        return definition


def is_valid_command_id(command_id: str | None) -> bool:
    return bool(command_id) and _COMMAND_ID_RE.fullmatch(command_id) is not None


class CommandNotFoundError(Exception):
    """Raised when a request names a malformed or unregistered command ID."""

    def __init__(self, command_id: str | None, malformed: bool = False) -> None:
        if malformed:
            message = f"Unsupported command ID: {command_id!r}"
        else:
            message = f"Unrecognized command ID {command_id}"
        super().__init__(message)
        self.command_id = command_id
        self.malformed = malformed
