"""Dialog state consumed and mutated by dispatched commands."""

from cmdialog.dialog.document import DialogDocument, ValidationResult, parse_document, validate_document
from cmdialog.dialog.list_items import ListItemArena, ListItemConfiguration
from cmdialog.dialog.progress import ProgressTracker
from cmdialog.dialog.state import DialogModel, DialogState

__all__ = [
    "DialogDocument",
    "DialogModel",
    "DialogState",
    "ListItemArena",
    "ListItemConfiguration",
    "ProgressTracker",
    "ValidationResult",
    "parse_document",
    "validate_document",
]
