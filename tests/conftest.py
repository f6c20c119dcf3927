from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from cmdialog.core.monitor import CommandFileMonitor
from cmdialog.core.parser import CommandParser
from cmdialog.dialog.state import DialogModel


class FakeObserver:
    """Stands in for a watchdog observer; tests call ``monitor.notify()`` themselves."""

    def __init__(self) -> None:
        self.scheduled: list[tuple[Any, str, bool]] = []
        self._alive = False

    def schedule(self, event_handler: Any, path: str, recursive: bool = False) -> None:
        self.scheduled.append((event_handler, path, recursive))

    def start(self) -> None:
        self._alive = True

    def stop(self) -> None:
        self._alive = False

    def join(self, timeout: float | None = None) -> None:
        _ = timeout

    def is_alive(self) -> bool:
        return self._alive


@pytest.fixture
def parser() -> CommandParser:
    return CommandParser()


@pytest.fixture
def model() -> DialogModel:
    return DialogModel()


@pytest.fixture
def command_file(tmp_path: Path) -> Path:
    return tmp_path / "dialog" / "commands.log"


@pytest.fixture
def observer_factory() -> type[FakeObserver]:
    return FakeObserver


@pytest.fixture
def monitor(parser: CommandParser, observer_factory: type[FakeObserver]):
    monitor = CommandFileMonitor(parser, debounce_seconds=0.05, observer_factory=observer_factory)
    yield monitor
    monitor.stop()
