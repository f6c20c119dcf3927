"""Command file tailing with debounced filesystem notifications."""

from __future__ import annotations

import os
import threading
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from blinker import Signal
from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from cmdialog.core.parser import CommandParser
from cmdialog.core.types import Command
from cmdialog.errors import CommandFileError, InvalidCommandFilePathError

DEFAULT_DEBOUNCE_SECONDS = 0.1
OBSERVER_JOIN_TIMEOUT_SECONDS = 2.0
UTF8_BOM = b"\xef\xbb\xbf"

CommandHandler = Callable[[Command], None]
ErrorHandler = Callable[[str, BaseException | None], None]


class ObserverLike(Protocol):
    def schedule(self, event_handler: FileSystemEventHandler, path: str, recursive: bool = False) -> Any: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def join(self, timeout: float | None = None) -> None: ...

    def is_alive(self) -> bool: ...


def command_file_header() -> str:
    created = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    return (
        f"# cmdialog command file created at {created}\n"
        "# Commands will be processed as they are appended to this file\n\n"
    )


def append_commands(path: str | os.PathLike[str], lines: Iterable[str]) -> int:
    """Append newline-terminated command lines; returns the number written."""

    payload = [line.rstrip("\r\n") + "\n" for line in lines]
    with open(path, "a", encoding="utf-8", newline="\n") as handle:
        handle.writelines(payload)
    return len(payload)


class _CommandFileEventHandler(FileSystemEventHandler):
    """Forward events that touch one file to the monitor."""

    def __init__(self, monitor: CommandFileMonitor, path: Path) -> None:
        self._monitor = monitor
        self._path = os.path.normcase(str(path))

    def _matches(self, raw: Any) -> bool:
        if not raw:
            return False
        if isinstance(raw, bytes):
            raw = os.fsdecode(raw)
        return os.path.normcase(os.path.abspath(raw)) == self._path

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in {"modified", "created", "moved", "deleted"}:
            return
        if self._matches(event.src_path) or self._matches(getattr(event, "dest_path", "")):
            self._monitor.notify()


class CommandFileMonitor:
    """Tail a command file and publish each parsed command.

    Filesystem notifications only arm a debounce timer; the read pass runs
    when the timer fires, so a burst of notifications for one logical append
    costs one pass. Passes are serialised, and the byte cursor is only moved
    after a successful read, so an I/O error simply retries on the next pass.
    """

    def __init__(
        self,
        parser: CommandParser,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        observer_factory: Callable[[], ObserverLike] = Observer,
    ) -> None:
        self._parser = parser
        self._debounce_seconds = debounce_seconds
        self._observer_factory = observer_factory
        self._observer: ObserverLike | None = None
        self._path: Path | None = None
        self._cursor = 0
        self._read_passes = 0
        self._cursor_lock = threading.Lock()
        self._pass_lock = threading.Lock()
        self._timer_lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._stopped = False
        self.command_received = Signal("cmdialog.command_received")
        self.error_occurred = Signal("cmdialog.error_occurred")

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def cursor(self) -> int:
        with self._cursor_lock:
            return self._cursor

    @property
    def read_passes(self) -> int:
        return self._read_passes

    @property
    def is_monitoring(self) -> bool:
        observer = self._observer
        return observer is not None and observer.is_alive()

    def on_command(self, handler: CommandHandler) -> Callable[[], None]:
        def _receiver(sender: Any, *, command: Command) -> None:
            handler(command)

        self.command_received.connect(_receiver, weak=False)
        return lambda: self.command_received.disconnect(_receiver)

    def on_error(self, handler: ErrorHandler) -> Callable[[], None]:
        def _receiver(sender: Any, *, message: str, error: BaseException | None) -> None:
            handler(message, error)

        self.error_occurred.connect(_receiver, weak=False)
        return lambda: self.error_occurred.disconnect(_receiver)

    def start(self, path: str | os.PathLike[str]) -> None:
        """Create the file if needed and start watching it from its current end."""

        resolved = self._resolve(path)
        self.stop()
        with self._timer_lock:
            self._stopped = False

        self._create_command_file(resolved)
        with self._cursor_lock:
            self._path = resolved
            self._cursor = resolved.stat().st_size

        observer = self._observer_factory()
        try:
            observer.schedule(_CommandFileEventHandler(self, resolved), str(resolved.parent), recursive=False)
            observer.start()
        except OSError as exc:
            self._emit_error(f"Failed to watch command file: {exc}", exc)
            raise CommandFileError(f"Failed to watch command file {resolved}: {exc}") from exc
        self._observer = observer
        logger.info("monitor.start path={} cursor={}", resolved, self._cursor)

    def stop(self) -> None:
        """Stop watching. Lines a running pass has not delivered yet are dropped."""

        with self._timer_lock:
            self._stopped = True
        self._cancel_timer()
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join(timeout=OBSERVER_JOIN_TIMEOUT_SECONDS)
            logger.info("monitor.stop path={}", self._path)

    def clear(self) -> None:
        """Truncate the command file and rewind the cursor."""

        if self._path is None:
            return
        failure: OSError | None = None
        with self._cursor_lock:
            try:
                with open(self._path, "wb"):
                    pass
            except OSError as exc:
                failure = exc
            else:
                self._cursor = 0
        if failure is not None:
            self._emit_error(f"Failed to clear command file: {failure}", failure)
            return
        logger.info("monitor.clear path={}", self._path)

    def notify(self) -> None:
        """Record one change notification; (re)arms the debounce timer."""

        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self._debounce_seconds, self._on_debounce_elapsed)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def poll(self) -> int:
        """Run one read pass now; returns the number of commands delivered."""

        with self._pass_lock:
            self._read_passes += 1
            lines = self._read_new_lines()
            delivered = 0
            for line in lines:
                if self._is_stopped():
                    logger.debug("monitor.pass_discarded path={}", self._path)
                    break
                command = self._parser.parse(line)
                if command is None:
                    continue
                try:
                    self.command_received.send(self, command=command)
                except Exception as exc:
                    logger.exception("monitor.handler_error command={}", command)
                    self._emit_error(f"Error handling command '{command.raw}': {exc}", exc)
                    continue
                delivered += 1
            return delivered

    def _on_debounce_elapsed(self) -> None:
        with self._timer_lock:
            self._timer = None
        try:
            self.poll()
        except Exception as exc:
            logger.exception("monitor.pass_error")
            self._emit_error(f"Error processing commands: {exc}", exc)

    def _is_stopped(self) -> bool:
        with self._timer_lock:
            return self._stopped

    def _cancel_timer(self) -> None:
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _read_new_lines(self) -> list[str]:
        failure: OSError | None = None
        consumed = b""
        with self._cursor_lock:
            try:
                consumed = self._read_delta()
            except OSError as exc:
                failure = exc
        if failure is not None:
            self._emit_error(f"IO error reading file: {failure}", failure)
            return []

        text = consumed.decode("utf-8", errors="replace")
        return [line for line in text.splitlines() if line.strip()]

    def _read_delta(self) -> bytes:
        """Read complete lines past the cursor and advance it. Caller holds the cursor lock."""

        path = self._path
        if path is None:
            return b""
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            self._cursor = 0
            return b""

        if size < self._cursor:
            logger.warning("monitor.truncated path={} cursor={} size={}", path, self._cursor, size)
            self._cursor = size
            return b""
        if size == self._cursor:
            return b""

        with open(path, "rb") as handle:
            handle.seek(self._cursor)
            chunk = handle.read(size - self._cursor)

        # A trailing partial line stays unread until its newline arrives.
        end = chunk.rfind(b"\n")
        if end < 0:
            return b""
        consumed = chunk[: end + 1]
        self._cursor += len(consumed)
        if consumed.startswith(UTF8_BOM) and self._cursor == len(consumed):
            consumed = consumed[len(UTF8_BOM) :]
        return consumed

    def _resolve(self, path: str | os.PathLike[str]) -> Path:
        if not os.fspath(path).strip():
            raise InvalidCommandFilePathError("Command file path cannot be empty")
        resolved = Path(path).expanduser().absolute()
        if resolved.is_dir():
            raise InvalidCommandFilePathError(f"Command file path is a directory: {resolved}")
        parent = resolved.parent
        for ancestor in (parent, *parent.parents):
            if ancestor.exists():
                if not ancestor.is_dir():
                    raise InvalidCommandFilePathError(f"Not a directory: {ancestor}")
                break
        return resolved

    def _create_command_file(self, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if not path.exists():
                path.write_text(command_file_header(), encoding="utf-8")
        except OSError as exc:
            self._emit_error(f"Failed to create command file: {exc}", exc)
            raise CommandFileError(f"Failed to create command file {path}: {exc}") from exc

    def _emit_error(self, message: str, error: BaseException | None = None) -> None:
        logger.warning("monitor.error {}", message)
        self.error_occurred.send(self, message=message, error=error)
