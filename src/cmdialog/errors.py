"""Application-level exception types for cmdialog."""

from __future__ import annotations


class CmdialogError(Exception):
    """Base exception for cmdialog."""


class CommandFileError(CmdialogError):
    """Raised when the command file cannot be created or opened."""


class InvalidCommandFilePathError(CommandFileError):
    """Raised when the command file path does not resolve to a usable directory."""


class ConfigurationError(CmdialogError):
    """Base exception for dialog configuration errors."""


class JsonConfigurationError(ConfigurationError):
    """Raised when a JSON dialog document cannot be read or parsed."""
