"""Wire the command file monitor to the dispatcher on one event loop."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable
from concurrent.futures import CancelledError as FutureCancelledError

from loguru import logger

from cmdialog.config import Settings
from cmdialog.core.dispatcher import CommandDispatcher
from cmdialog.core.executor import SubprocessExecutor
from cmdialog.core.monitor import CommandFileMonitor
from cmdialog.core.parser import CommandParser
from cmdialog.core.types import Command
from cmdialog.dialog.state import DialogModel


class DialogSession:
    """Own one dialog and feed it commands from its command file.

    Commands arrive on the monitor's timer thread. Each one is handed to the
    event loop that owns the dialog state and the monitor thread waits for it
    to finish, so the next line is not dispatched until the previous effect
    completed.
    """

    def __init__(
        self,
        state: DialogModel,
        monitor: CommandFileMonitor,
        dispatcher: CommandDispatcher,
        executor: SubprocessExecutor,
    ) -> None:
        self.state = state
        self.monitor = monitor
        self.dispatcher = dispatcher
        self.executor = executor
        self._loop: asyncio.AbstractEventLoop | None = None
        self._unsubscribers: list[Callable[[], None]] = []

    @classmethod
    def from_settings(cls, settings: Settings, state: DialogModel | None = None) -> DialogSession:
        state = state or DialogModel()
        executor = SubprocessExecutor()
        monitor = CommandFileMonitor(CommandParser(), debounce_seconds=settings.debounce_seconds)
        dispatcher = CommandDispatcher(
            state,
            executor,
            command_timeout_seconds=settings.command_timeout_seconds,
            working_directory=settings.working_directory,
        )
        return cls(state, monitor, dispatcher, executor)

    async def start(self, path: str | os.PathLike[str]) -> None:
        self._loop = asyncio.get_running_loop()
        self._unsubscribers = [
            self.monitor.on_command(self._on_command),
            self.monitor.on_error(self._on_error),
            self.executor.on_output(self._on_output),
        ]
        try:
            await asyncio.to_thread(self.monitor.start, path)
        except BaseException:
            self._disconnect()
            raise

    async def stop(self) -> None:
        await asyncio.to_thread(self.monitor.stop)
        self._disconnect()
        self._loop = None

    async def run(self, path: str | os.PathLike[str]) -> DialogModel:
        """Monitor ``path`` until a ``quit`` command closes the dialog."""

        await self.start(path)
        try:
            await self.state.wait_closed()
        finally:
            await self.stop()
        return self.state

    def _disconnect(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def _on_command(self, command: Command) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.warning("session.loop_unavailable command={}", command)
            return
        future = asyncio.run_coroutine_threadsafe(self.dispatcher.dispatch(command), loop)
        try:
            future.result()
        except FutureCancelledError:
            logger.warning("session.dispatch_cancelled command={}", command)

    def _on_error(self, message: str, error: BaseException | None) -> None:
        logger.warning("session.monitor_error {}", message)

    def _on_output(self, command: str, line: str, is_error: bool) -> None:
        if is_error:
            logger.warning("session.output stderr command={!r} {}", command, line)
        else:
            logger.info("session.output stdout command={!r} {}", command, line)
