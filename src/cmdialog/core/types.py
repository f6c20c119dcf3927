"""Shared core dataclasses and enums."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class CommandType(StrEnum):
    """Fixed vocabulary of command-file verbs."""

    TITLE = "title"
    MESSAGE = "message"
    PROGRESS = "progress"
    PROGRESS_TEXT = "progresstext"
    PROGRESS_INCREMENT = "progressincrement"
    PROGRESS_RESET = "progressreset"
    QUIT = "quit"
    LIST_ITEM = "listitem"
    LIST = "list"
    CONFIG = "config"
    STYLE = "style"
    THEME = "theme"
    EXECUTE = "execute"
    EXECUTE_POWERSHELL = "executepowershell"
    EXECUTE_OUTPUT = "executeoutput"
    WIDTH = "width"
    HEIGHT = "height"
    POSITION = "position"
    ICON = "icon"
    IMAGE = "image"
    BUTTON1_TEXT = "button1text"
    BUTTON2_TEXT = "button2text"

    @classmethod
    def lookup(cls, verb: str) -> CommandType | None:
        try:
            return cls(verb.strip().lower())
        except ValueError:
            return None


class ListItemStatus(StrEnum):
    """Status of one list item."""

    NONE = "none"
    WAIT = "wait"
    SUCCESS = "success"
    FAIL = "fail"
    ERROR = "error"
    PENDING = "pending"
    PROGRESS = "progress"

    @classmethod
    def from_string(cls, value: str | None) -> ListItemStatus:
        """Case-insensitive lookup; unknown and empty values map to NONE."""
        if not value:
            return cls.NONE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.NONE

    @classmethod
    def is_known(cls, value: str | None) -> bool:
        return (value or "").strip().lower() in {status.value for status in cls}

    @property
    def icon(self) -> str:
        return _STATUS_ICONS[self]


_STATUS_ICONS: dict[ListItemStatus, str] = {
    ListItemStatus.NONE: "",
    ListItemStatus.WAIT: "⏳",
    ListItemStatus.SUCCESS: "✅",
    ListItemStatus.FAIL: "❌",
    ListItemStatus.ERROR: "⚠️",
    ListItemStatus.PENDING: "🔵",
    ListItemStatus.PROGRESS: "🔄",
}


class ShellKind(StrEnum):
    """Interpreter used for execute* commands."""

    SYSTEM = "system"
    POWERSHELL = "powershell"


@dataclass(frozen=True)
class Command:
    """One command parsed from a command-file line."""

    type: CommandType
    value: str = ""
    parameters: dict[str, str] = field(default_factory=dict)
    raw: str = ""
    timestamp: float = field(default_factory=time.monotonic)
    received_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def param(self, key: str) -> str | None:
        value = self.parameters.get(key)
        return value if value else None

    def __str__(self) -> str:
        params = ", ".join(f"{key}={value}" for key, value in self.parameters.items())
        return f"{self.type}: {self.value} [{params}]"
