import asyncio
from pathlib import Path

import pytest

from cmdialog.config import Settings
from cmdialog.core.dispatcher import CommandDispatcher
from cmdialog.core.executor import SubprocessExecutor
from cmdialog.core.monitor import CommandFileMonitor, append_commands
from cmdialog.core.parser import CommandParser
from cmdialog.dialog.state import DialogModel
from cmdialog.errors import InvalidCommandFilePathError
from cmdialog.session import DialogSession


def _session(model: DialogModel, observer_factory) -> DialogSession:
    executor = SubprocessExecutor()
    monitor = CommandFileMonitor(CommandParser(), debounce_seconds=0.02, observer_factory=observer_factory)
    dispatcher = CommandDispatcher(model, executor, command_timeout_seconds=5.0)
    return DialogSession(model, monitor, dispatcher, executor)


@pytest.mark.asyncio
async def test_commands_are_applied_in_file_order(model: DialogModel, command_file: Path, observer_factory) -> None:
    session = _session(model, observer_factory)
    await session.start(command_file)
    try:
        append_commands(
            command_file,
            [
                "title: Installing",
                "listitem: add, title: Chrome, status: pending",
                "progress: 10",
                "progressincrement: 15",
                "listitem: title: Chrome, status: success",
            ],
        )
        delivered = await asyncio.to_thread(session.monitor.poll)
    finally:
        await session.stop()

    assert delivered == 5
    assert model.title == "Installing"
    assert model.progress.value == 25
    assert model.find_list_item(title="Chrome").status == "success"


@pytest.mark.asyncio
async def test_run_returns_after_quit(model: DialogModel, command_file: Path, observer_factory) -> None:
    session = _session(model, observer_factory)
    task = asyncio.create_task(session.run(command_file))

    for _ in range(100):
        if session.monitor.is_monitoring:
            break
        await asyncio.sleep(0.01)
    assert session.monitor.is_monitoring

    append_commands(command_file, ["message: done", "quit:"])
    session.monitor.notify()

    state = await asyncio.wait_for(task, timeout=5.0)

    assert state is model
    assert model.message == "done"
    assert model.closed is True
    assert session.monitor.is_monitoring is False


@pytest.mark.asyncio
async def test_start_failure_disconnects_handlers(model: DialogModel, tmp_path: Path, observer_factory) -> None:
    session = _session(model, observer_factory)

    with pytest.raises(InvalidCommandFilePathError):
        await session.start(tmp_path)

    assert not session.monitor.command_received.receivers
    assert not session.executor.output_received.receivers


def test_from_settings_wires_components(tmp_path: Path) -> None:
    settings = Settings(command_file=tmp_path / "commands.log", command_timeout_seconds=3.0)

    session = DialogSession.from_settings(settings)

    assert isinstance(session.state, DialogModel)
    assert isinstance(session.monitor, CommandFileMonitor)
    assert isinstance(session.dispatcher, CommandDispatcher)
