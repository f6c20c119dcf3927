"""Bulk JSON dialog configuration."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from cmdialog.core.types import ListItemStatus
from cmdialog.errors import JsonConfigurationError


class _DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ButtonSpec(_DocumentModel):
    text: str = ""
    action: str = ""
    icon: str | None = None
    style: str | None = None
    is_default: bool = False
    is_cancel: bool = False
    is_enabled: bool = True
    tooltip: str | None = None
    shortcut: str | None = None


class ProgressSpec(_DocumentModel):
    value: int = 0
    maximum: int = 100
    text: str | None = None
    show_percentage: bool = True
    indeterminate: bool = False


class ListItemSpec(_DocumentModel):
    title: str = ""
    status: str = "none"
    status_text: str | None = None
    icon: str | None = None
    is_enabled: bool = True
    data: dict[str, Any] | None = None


class AnimationSpec(_DocumentModel):
    fade_in: bool = False
    slide_in: str | None = None
    duration: int = 300
    easing: str | None = None


class StylingSpec(_DocumentModel):
    theme: str | None = None
    width: int | None = None
    height: int | None = None
    position: str | None = None
    background_color: str | None = None
    foreground_color: str | None = None
    font_family: str | None = None
    font_size: int | None = None
    opacity: float | None = None
    animations: AnimationSpec | None = None


class BehaviorSpec(_DocumentModel):
    timeout: int | None = None
    auto_close: bool = False
    moveable: bool = True
    resizable: bool = False
    top_most: bool = False
    center_on_screen: bool = True
    show_in_taskbar: bool = True


class DialogDocument(_DocumentModel):
    """A whole dialog described in one JSON document. Unknown fields are ignored."""

    title: str | None = None
    message: str | None = None
    icon: str | None = None
    image: str | None = None
    buttons: list[ButtonSpec] = Field(default_factory=list)
    progress: ProgressSpec | None = None
    list_items: list[ListItemSpec] = Field(default_factory=list)
    styling: StylingSpec | None = None
    behavior: BehaviorSpec | None = None


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


def parse_document(text: str) -> DialogDocument:
    """Parse a JSON document, raising JsonConfigurationError on bad input."""

    if not text.strip():
        raise JsonConfigurationError("Invalid JSON configuration: document is empty")
    try:
        return DialogDocument.model_validate_json(text)
    except ValidationError as exc:
        raise JsonConfigurationError(f"Invalid JSON configuration: {exc}") from exc


async def load_document(path: str | Path) -> DialogDocument:
    """Read and parse a JSON document from disk without blocking the loop."""

    file_path = Path(path).expanduser()
    try:
        text = await asyncio.to_thread(file_path.read_text, encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise JsonConfigurationError(f"Configuration file not found: {file_path}") from exc
    except OSError as exc:
        raise JsonConfigurationError(f"Error reading configuration file: {exc}") from exc
    return parse_document(text)


def validate_document(document: DialogDocument) -> ValidationResult:
    """Structural and semantic checks; errors reject the whole document."""

    result = ValidationResult()

    if not (document.title or "").strip():
        result.warnings.append("Title is empty")
    if not (document.message or "").strip():
        result.warnings.append("Message is empty")

    if not document.buttons:
        result.warnings.append("No buttons defined - dialog may be uncloseable")
    if sum(1 for button in document.buttons if button.is_default) > 1:
        result.errors.append("Only one button can be marked as default")
    if sum(1 for button in document.buttons if button.is_cancel) > 1:
        result.errors.append("Only one button can be marked as cancel")

    progress = document.progress
    if progress is not None and not 0 <= progress.value <= progress.maximum:
        result.errors.append(f"Progress value ({progress.value}) must be between 0 and {progress.maximum}")

    for item in document.list_items:
        if not item.title.strip():
            result.errors.append("List item title cannot be empty")
        if not ListItemStatus.is_known(item.status):
            result.warnings.append(f"Unknown status '{item.status}' for list item '{item.title}'")

    styling = document.styling
    if styling is not None:
        if styling.width is not None and styling.width <= 0:
            result.errors.append("Width must be positive")
        if styling.height is not None and styling.height <= 0:
            result.errors.append("Height must be positive")
        if styling.opacity is not None and not 0 <= styling.opacity <= 1:
            result.errors.append("Opacity must be between 0 and 1")

    return result


def sample_document() -> DialogDocument:
    return DialogDocument(
        title="Sample Dialog",
        message="This is a sample dialog configuration demonstrating advanced features.",
        icon="information",
        buttons=[
            ButtonSpec(text="Continue", action="continue", is_default=True, icon="arrow-right", tooltip="Proceed"),
            ButtonSpec(text="Cancel", action="cancel", is_cancel=True, icon="x", tooltip="Cancel operation"),
        ],
        progress=ProgressSpec(value=0, maximum=100, text="Initializing..."),
        list_items=[
            ListItemSpec(title="Step 1", status="pending", status_text="Waiting..."),
            ListItemSpec(title="Step 2", status="none", status_text="Not started"),
            ListItemSpec(title="Step 3", status="none", status_text="Not started"),
        ],
        styling=StylingSpec(
            theme="modern",
            width=500,
            height=400,
            position="center",
            animations=AnimationSpec(fade_in=True, duration=300),
        ),
        behavior=BehaviorSpec(timeout=60, moveable=True, center_on_screen=True, top_most=False),
    )


def dump_document(document: DialogDocument) -> str:
    return json.dumps(document.model_dump(by_alias=True, exclude_none=True), indent=2, ensure_ascii=False)
