"""Command-file protocol engine."""

from cmdialog.core.dispatcher import CommandDispatcher, resolve_listitem_action
from cmdialog.core.executor import CommandExecutionResult, SubprocessExecutor, is_command_safe
from cmdialog.core.monitor import CommandFileMonitor, append_commands
from cmdialog.core.parser import CommandParser
from cmdialog.core.types import Command, CommandType, ListItemStatus, ShellKind

__all__ = [
    "Command",
    "CommandDispatcher",
    "CommandExecutionResult",
    "CommandFileMonitor",
    "CommandParser",
    "CommandType",
    "ListItemStatus",
    "ShellKind",
    "SubprocessExecutor",
    "append_commands",
    "is_command_safe",
    "resolve_listitem_action",
]
