"""Command dispatch onto dialog state and the subprocess executor."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable
from pathlib import Path

from loguru import logger

from cmdialog.core.executor import DEFAULT_TIMEOUT_SECONDS, SubprocessExecutor
from cmdialog.core.types import Command, CommandType, ShellKind
from cmdialog.dialog.document import DialogDocument, load_document, parse_document, validate_document
from cmdialog.dialog.state import DialogState
from cmdialog.errors import JsonConfigurationError

LIST_ITEM_ACTIONS = ("add", "update", "delete")
DEFAULT_LIST_ITEM_ACTION = "update"

Handler = Callable[[Command], Awaitable[bool]]


def resolve_listitem_action(command: Command) -> str:
    """Pick the listitem action from its three accepted encodings.

    The ``action`` parameter is canonical. The legacy forms follow it in
    priority: a bare leading word (``listitem: add, title: X``), then a
    parameter key named after an action (``listitem: delete: X``).
    Defaults to ``update``.
    """

    candidates: list[str] = []
    explicit = (command.parameters.get("action") or "").strip().lower()
    if explicit in LIST_ITEM_ACTIONS:
        candidates.append(explicit)
    leading = command.value.split(",", 1)[0].strip().lower()
    if leading in LIST_ITEM_ACTIONS:
        candidates.append(leading)
    keyed = next((action for action in LIST_ITEM_ACTIONS if action in command.parameters), None)
    if keyed is not None:
        candidates.append(keyed)

    if not candidates:
        return DEFAULT_LIST_ITEM_ACTION
    if len(set(candidates)) > 1:
        logger.warning("dispatch.listitem_action_conflict candidates={} raw={!r}", candidates, command.raw)
    return candidates[0]


def _listitem_title(command: Command) -> str | None:
    title = command.param("title")
    if title is None:
        return None
    # "listitem: add" parses to title="add" through the bare form; that is an action, not a title.
    if title.strip().lower() in LIST_ITEM_ACTIONS and command.value.strip().lower() == title.strip().lower():
        return None
    return title


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    text = value.strip().rstrip("%").strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return None


class CommandDispatcher:
    """Map each command to exactly one effect, one command at a time."""

    def __init__(
        self,
        state: DialogState,
        executor: SubprocessExecutor,
        *,
        command_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        working_directory: str | os.PathLike[str] | None = None,
    ) -> None:
        self._state = state
        self._executor = executor
        self._timeout = command_timeout_seconds
        self._working_directory = working_directory
        self._lock = asyncio.Lock()
        self._handlers: dict[CommandType, Handler] = {
            CommandType.TITLE: self._title,
            CommandType.MESSAGE: self._message,
            CommandType.PROGRESS: self._progress,
            CommandType.PROGRESS_TEXT: self._progress_text,
            CommandType.PROGRESS_INCREMENT: self._progress_increment,
            CommandType.PROGRESS_RESET: self._progress_reset,
            CommandType.LIST_ITEM: self._list_item,
            CommandType.LIST: self._list,
            CommandType.CONFIG: self._config,
            CommandType.STYLE: self._style,
            CommandType.THEME: self._theme,
            CommandType.EXECUTE: self._execute,
            CommandType.EXECUTE_POWERSHELL: self._execute_powershell,
            CommandType.EXECUTE_OUTPUT: self._execute_output,
            CommandType.QUIT: self._quit,
            CommandType.WIDTH: self._dimension,
            CommandType.HEIGHT: self._dimension,
            CommandType.POSITION: self._property,
            CommandType.ICON: self._property,
            CommandType.IMAGE: self._property,
            CommandType.BUTTON1_TEXT: self._property,
            CommandType.BUTTON2_TEXT: self._property,
        }

    async def dispatch(self, command: Command) -> bool:
        """Apply one command; never raises."""

        handler = self._handlers.get(command.type)
        if handler is None:
            logger.debug("dispatch.unhandled command={}", command)
            return False
        async with self._lock:
            try:
                ok = await handler(command)
            except Exception:
                logger.exception("dispatch.error command={}", command)
                return False
        if ok:
            logger.debug("dispatch.ok command={}", command)
        else:
            logger.warning("dispatch.failed command={}", command)
        return ok

    async def _title(self, command: Command) -> bool:
        self._state.set_title(command.value)
        return True

    async def _message(self, command: Command) -> bool:
        self._state.set_message(command.value)
        return True

    async def _progress(self, command: Command) -> bool:
        value = _parse_int(command.value)
        if value is None:
            return False
        self._state.set_progress(value)
        return True

    async def _progress_text(self, command: Command) -> bool:
        self._state.set_progress_text(command.value)
        return True

    async def _progress_increment(self, command: Command) -> bool:
        delta = _parse_int(command.value) if command.value.strip() else 1
        if delta is None:
            return False
        self._state.increment_progress(delta)
        return True

    async def _progress_reset(self, command: Command) -> bool:
        self._state.reset_progress(command.value or None)
        return True

    async def _list_item(self, command: Command) -> bool:
        action = resolve_listitem_action(command)
        title = _listitem_title(command) or command.param(action)
        status = command.param("status")
        status_text = command.param("statustext")
        icon = command.param("icon")

        if action == "add":
            if not title:
                logger.warning("dispatch.listitem_add_without_title raw={!r}", command.raw)
                return False
            existing = self._state.find_list_item(title=title)
            if existing is not None:
                logger.warning("dispatch.listitem_duplicate title={!r}", title)
                self._state.update_list_item(existing, status=status, status_text=status_text, icon=icon)
                return True
            self._state.add_list_item(title, status=status, status_text=status_text, icon=icon)
            return True

        index = _parse_int(command.param("index"))
        item = self._state.find_list_item(title=title, index=index)
        if item is None:
            logger.warning("dispatch.listitem_not_found title={!r} index={!r}", title, command.param("index"))
            return False

        if action == "delete":
            self._state.remove_list_item(item)
            return True

        progress = command.param("progress")
        progress_value = _parse_int(progress) if progress is not None else None
        self._state.update_list_item(
            item,
            status=status,
            status_text=status_text,
            icon=icon,
            progress=float(progress_value) if progress_value is not None else None,
        )
        return True

    async def _list(self, command: Command) -> bool:
        if (command.param("action") or "").lower() != "clear":
            return False
        self._state.clear_list_items()
        return True

    async def _config(self, command: Command) -> bool:
        source = command.value.strip()
        try:
            document = await self._load_document(source)
        except JsonConfigurationError as exc:
            logger.error("dispatch.config_invalid error={}", exc)
            return False

        result = validate_document(document)
        for warning in result.warnings:
            logger.warning("dispatch.config_warning {}", warning)
        if not result.is_valid:
            for error in result.errors:
                logger.error("dispatch.config_error {}", error)
            return False

        self._state.apply_document(document)
        return True

    async def _load_document(self, source: str) -> DialogDocument:
        if source.startswith("{"):
            return parse_document(source)
        if not source:
            raise JsonConfigurationError("config command has no document")
        return await load_document(Path(source.strip('"')))

    async def _style(self, command: Command) -> bool:
        return self._state.apply_style(command.value)

    async def _theme(self, command: Command) -> bool:
        return self._state.apply_theme(command.value)

    async def _execute(self, command: Command) -> bool:
        return await self._run(command, shell=ShellKind.SYSTEM)

    async def _execute_powershell(self, command: Command) -> bool:
        return await self._run(command, shell=ShellKind.POWERSHELL)

    async def _execute_output(self, command: Command) -> bool:
        if not command.value.strip():
            return False
        result = await self._executor.execute_and_capture(
            command.value,
            working_directory=self._working_directory,
            timeout_seconds=self._timeout,
        )
        if result.stdout.strip():
            self._state.set_message(result.stdout.strip())
        return result.success

    async def _run(self, command: Command, *, shell: ShellKind) -> bool:
        if not command.value.strip():
            return False
        result = await self._executor.execute(
            command.value,
            shell=shell,
            working_directory=self._working_directory,
            timeout_seconds=self._timeout,
        )
        return result.success

    async def _quit(self, command: Command) -> bool:
        self._state.close()
        return True

    async def _dimension(self, command: Command) -> bool:
        value = _parse_int(command.value)
        if value is None or value <= 0:
            return False
        self._state.set_property(str(command.type), str(value))
        return True

    async def _property(self, command: Command) -> bool:
        self._state.set_property(str(command.type), command.value)
        return True
