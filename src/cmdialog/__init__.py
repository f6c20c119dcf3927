"""cmdialog - drive a dialog from a command file."""

from .core import Command, CommandDispatcher, CommandFileMonitor, CommandParser, SubprocessExecutor
from .dialog import DialogModel
from .session import DialogSession

__version__ = "0.1.0"

__all__ = [
    "Command",
    "CommandDispatcher",
    "CommandFileMonitor",
    "CommandParser",
    "DialogModel",
    "DialogSession",
    "SubprocessExecutor",
]
