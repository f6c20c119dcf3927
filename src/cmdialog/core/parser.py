"""Command-file line parsing."""

from __future__ import annotations

from collections.abc import Iterable

from cmdialog.core.types import Command, CommandType

COMMENT_PREFIX = "#"
PARAMETERISED = frozenset({CommandType.LIST_ITEM, CommandType.LIST})


class CommandParser:
    """Translate raw command-file lines into commands.

    Examples of accepted lines:

        title: Installing software
        progress: 40
        listitem: add, title: Chrome, status: pending
        listitem: index: 0, status: success, statustext: Done
        list: clear

    Parsing never raises. Comments, blank lines, lines without a colon and
    unknown verbs all yield ``None`` so scripts written for newer versions
    do not break older dialogs.
    """

    def parse(self, line: str) -> Command | None:
        stripped = line.strip()
        if not stripped or stripped.startswith(COMMENT_PREFIX):
            return None

        verb, sep, rest = stripped.partition(":")
        if not sep:
            return None

        command_type = CommandType.lookup(verb)
        if command_type is None:
            return None

        value = rest.strip()
        parameters = parse_parameters(command_type, value) if command_type in PARAMETERISED else {}
        return Command(type=command_type, value=value, parameters=parameters, raw=line)

    def parse_many(self, lines: Iterable[str]) -> list[Command]:
        commands: list[Command] = []
        for line in lines:
            command = self.parse(line)
            if command is not None:
                commands.append(command)
        return commands

    def is_valid(self, line: str) -> bool:
        return self.parse(line) is not None


def parse_parameters(command_type: CommandType, value: str) -> dict[str, str]:
    """Parse ``key: value, key: value`` sub-fields of listitem/list commands."""

    if not value.strip():
        return {}

    if command_type is CommandType.LIST and value.strip().lower() == "clear":
        return {"action": "clear"}

    parameters: dict[str, str] = {}
    for segment in value.split(","):
        key, sep, raw_value = segment.strip().partition(":")
        key = key.strip().lower()
        if not sep or not key:
            continue
        parameters[key] = _strip_quotes(raw_value.strip())

    # Bare form: "listitem: Install Chrome"
    if not parameters and command_type is CommandType.LIST_ITEM:
        parameters["title"] = value.strip()
    return parameters


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value
