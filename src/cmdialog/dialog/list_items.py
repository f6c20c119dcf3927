"""List item model and the ordered arena that tracks them."""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from cmdialog.core.types import ListItemStatus


@dataclass
class ListItemConfiguration:
    """One row of the dialog's item list."""

    title: str
    index: int = 0
    status: ListItemStatus = ListItemStatus.NONE
    status_text: str = ""
    subtitle: str = ""
    icon: str = ""
    icon_url: str = ""
    progress: float = 0.0
    is_visible: bool = True
    is_enabled: bool = True
    data: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def display_icon(self) -> str:
        return self.icon_url or self.icon or self.status.icon

    def update_status(self, status: ListItemStatus | str, status_text: str = "") -> None:
        if isinstance(status, str):
            status = ListItemStatus.from_string(status)
        self.status = status
        if status_text:
            self.status_text = status_text

    def update_progress(self, value: float) -> None:
        self.progress = max(0.0, min(100.0, value))
        if value > 0 and self.status is ListItemStatus.NONE:
            self.status = ListItemStatus.PROGRESS

    def __str__(self) -> str:
        parts = [f"{self.display_icon} {self.title}".strip()]
        if self.subtitle:
            parts.append(f"Subtitle: {self.subtitle}")
        if self.status is not ListItemStatus.NONE:
            parts.append(f"Status: {self.status}")
        if self.status_text:
            parts.append(f"StatusText: {self.status_text}")
        if self.progress > 0:
            parts.append(f"Progress: {self.progress:.1f}%")
        return ", ".join(parts)


class ListItemArena:
    """Ordered item storage with a secondary title index.

    Items keep the index they were assigned on ``add``; deleting an item
    does not renumber the others. Lookups go by title first, then by that
    assigned index.
    """

    def __init__(self) -> None:
        self._items: list[ListItemConfiguration] = []
        self._by_title: dict[str, str] = {}
        self._next_index = 0

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ListItemConfiguration]:
        return iter(list(self._items))

    @property
    def next_index(self) -> int:
        return self._next_index

    def add(self, title: str, **fields: Any) -> ListItemConfiguration:
        item = ListItemConfiguration(title=title, index=self._next_index, **fields)
        self._items.append(item)
        self._by_title[title] = item.id
        self._next_index += 1
        return item

    def resolve(self, *, title: str | None = None, index: int | None = None) -> ListItemConfiguration | None:
        if title:
            item_id = self._by_title.get(title)
            if item_id is not None:
                return self._get(item_id)
        if index is not None:
            for item in self._items:
                if item.index == index:
                    return item
        return None

    def remove(self, item: ListItemConfiguration) -> None:
        self._items = [existing for existing in self._items if existing.id != item.id]
        if self._by_title.get(item.title) == item.id:
            del self._by_title[item.title]

    def clear(self) -> None:
        self._items.clear()
        self._by_title.clear()
        self._next_index = 0

    def _get(self, item_id: str) -> ListItemConfiguration | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None
