"""Dialog state owned by the renderer side of the process."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol

from loguru import logger

from cmdialog.core.types import ListItemStatus
from cmdialog.dialog.document import BehaviorSpec, ButtonSpec, DialogDocument, StylingSpec
from cmdialog.dialog.list_items import ListItemArena, ListItemConfiguration
from cmdialog.dialog.progress import ProgressTracker

DIALOG_PROPERTIES = frozenset({"width", "height", "position", "icon", "image", "button1text", "button2text"})


class DialogState(Protocol):
    """Operations the dispatcher needs from whoever owns the dialog."""

    def set_title(self, title: str) -> None: ...

    def set_message(self, message: str) -> None: ...

    def set_progress(self, value: int) -> int: ...

    def increment_progress(self, delta: int) -> int: ...

    def reset_progress(self, text: str | None = None) -> None: ...

    def set_progress_text(self, text: str) -> None: ...

    def add_list_item(
        self, title: str, *, status: str | None = None, status_text: str | None = None, icon: str | None = None
    ) -> ListItemConfiguration: ...

    def find_list_item(self, *, title: str | None = None, index: int | None = None) -> ListItemConfiguration | None: ...

    def update_list_item(
        self,
        item: ListItemConfiguration,
        *,
        status: str | None = None,
        status_text: str | None = None,
        icon: str | None = None,
        progress: float | None = None,
    ) -> None: ...

    def remove_list_item(self, item: ListItemConfiguration) -> None: ...

    def clear_list_items(self) -> None: ...

    def apply_style(self, style: str) -> bool: ...

    def apply_theme(self, theme: str) -> bool: ...

    def set_property(self, name: str, value: str) -> None: ...

    def apply_document(self, document: DialogDocument) -> None: ...

    def close(self) -> None: ...


@dataclass
class DialogModel:
    """In-memory dialog state; a renderer reads it, the dispatcher writes it."""

    title: str = ""
    message: str = ""
    icon: str = ""
    image: str = ""
    buttons: list[ButtonSpec] = field(default_factory=list)
    progress: ProgressTracker = field(default_factory=ProgressTracker)
    progress_maximum: int = 100
    items: ListItemArena = field(default_factory=ListItemArena)
    properties: dict[str, str] = field(default_factory=dict)
    styles: dict[str, str] = field(default_factory=dict)
    theme: str | None = None
    styling: StylingSpec | None = None
    behavior: BehaviorSpec | None = None
    closed: bool = False
    _closed_event: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def set_title(self, title: str) -> None:
        self.title = title

    def set_message(self, message: str) -> None:
        self.message = message

    def set_progress(self, value: int) -> int:
        return self.progress.set(value)

    def increment_progress(self, delta: int) -> int:
        return self.progress.increment(delta)

    def reset_progress(self, text: str | None = None) -> None:
        self.progress.reset(text)

    def set_progress_text(self, text: str) -> None:
        self.progress.text = text

    def add_list_item(
        self, title: str, *, status: str | None = None, status_text: str | None = None, icon: str | None = None
    ) -> ListItemConfiguration:
        item = self.items.add(title)
        self.update_list_item(item, status=status, status_text=status_text, icon=icon)
        return item

    def find_list_item(self, *, title: str | None = None, index: int | None = None) -> ListItemConfiguration | None:
        return self.items.resolve(title=title, index=index)

    def update_list_item(
        self,
        item: ListItemConfiguration,
        *,
        status: str | None = None,
        status_text: str | None = None,
        icon: str | None = None,
        progress: float | None = None,
    ) -> None:
        if status:
            item.update_status(status)
        if status_text:
            item.status_text = status_text
        if icon:
            item.icon = icon
        if progress is not None:
            item.update_progress(progress)

    def remove_list_item(self, item: ListItemConfiguration) -> None:
        self.items.remove(item)

    def clear_list_items(self) -> None:
        self.items.clear()

    def apply_style(self, style: str) -> bool:
        """Record ``element, property, value``; anything else is kept verbatim."""
        parts = [part.strip() for part in style.split(",", 2)]
        if len(parts) == 3 and all(parts):
            element, prop, value = parts
            self.styles[f"{element.lower()}.{prop.lower()}"] = value
            return True
        if style.strip():
            self.styles[style.strip()] = ""
            return True
        return False

    def apply_theme(self, theme: str) -> bool:
        if not theme.strip():
            return False
        self.theme = theme.strip()
        return True

    def set_property(self, name: str, value: str) -> None:
        if name not in DIALOG_PROPERTIES:
            raise KeyError(name)
        self.properties[name] = value
        if name == "icon":
            self.icon = value
        elif name == "image":
            self.image = value

    def apply_document(self, document: DialogDocument) -> None:
        """Replace dialog state wholesale with an already validated document."""

        items = ListItemArena()
        for spec in document.list_items:
            item = items.add(spec.title, is_enabled=spec.is_enabled, data=dict(spec.data or {}))
            item.update_status(ListItemStatus.from_string(spec.status), spec.status_text or "")
            if spec.icon:
                item.icon = spec.icon

        progress = ProgressTracker()
        maximum = 100
        if document.progress is not None:
            maximum = document.progress.maximum or 100
            progress.set(round(document.progress.value * 100 / maximum), document.progress.text or "")

        # Properties and styles set by earlier commands do not survive a document.
        properties: dict[str, str] = {}
        styling = document.styling
        if styling is not None:
            for name, value in (("width", styling.width), ("height", styling.height), ("position", styling.position)):
                if value:
                    properties[name] = str(value)
        for name, value in (("icon", document.icon), ("image", document.image)):
            if value:
                properties[name] = value
        for name, button in zip(("button1text", "button2text"), document.buttons):
            if button.text:
                properties[name] = button.text

        self.title = document.title or ""
        self.message = document.message or ""
        self.icon = document.icon or ""
        self.image = document.image or ""
        self.buttons = [button.model_copy() for button in document.buttons]
        self.progress = progress
        self.progress_maximum = maximum
        self.items = items
        self.properties = properties
        self.styles = {}
        self.styling = document.styling
        self.behavior = document.behavior
        if document.styling is not None and document.styling.theme:
            self.theme = document.styling.theme
        logger.info("dialog.document_applied title={!r} items={}", self.title, len(items))

    def close(self) -> None:
        self.closed = True
        self._closed_event.set()

    async def wait_closed(self) -> None:
        await self._closed_event.wait()

    def snapshot(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "message": self.message,
            "progress": self.progress.value,
            "progress_text": self.progress.text,
            "items": [
                {"index": item.index, "title": item.title, "status": str(item.status), "status_text": item.status_text}
                for item in self.items
            ],
            "properties": dict(self.properties),
            "theme": self.theme,
            "closed": self.closed,
        }
