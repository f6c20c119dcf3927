"""Subprocess execution for execute* commands."""

from __future__ import annotations

import asyncio
import os
import shutil
import sys
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import psutil
from blinker import Signal
from loguru import logger

from cmdialog.core.types import ShellKind

DEFAULT_TIMEOUT_SECONDS = 30.0
STREAM_LIMIT_BYTES = 1024 * 1024

UNSAFE_FRAGMENTS = (
    "format",
    "del",
    "rmdir",
    "rd",
    "erase",
    "attrib",
    "fdisk",
    "diskpart",
    "shutdown",
    "restart",
    "reboot",
    "net user",
    "net localgroup",
    "reg delete",
    "reg add",
    "sc delete",
    "taskkill",
    "wmic",
    "powercfg",
    "bcdedit",
)

OutputHandler = Callable[[str, str, bool], None]


@dataclass(frozen=True)
class CommandExecutionResult:
    """Result of one subprocess invocation."""

    command: str
    shell: str
    exit_code: int
    success: bool
    timed_out: bool
    stdout: str
    stderr: str
    started_at: datetime
    finished_at: datetime
    pid: int | None = None
    error: str | None = None

    @property
    def duration(self) -> timedelta:
        return self.finished_at - self.started_at

    def __str__(self) -> str:
        millis = int(self.duration.total_seconds() * 1000)
        return f"Command: {self.command}, Success: {self.success}, ExitCode: {self.exit_code}, Duration: {millis}ms"


def is_command_safe(command: str) -> bool:
    """Advisory blacklist check; a match does not block execution."""

    if not command.strip():
        return False
    lowered = command.lower()
    return not any(fragment in lowered for fragment in UNSAFE_FRAGMENTS)


def build_shell_argv(shell: ShellKind, command: str) -> list[str]:
    if shell is ShellKind.POWERSHELL:
        executable = shutil.which("pwsh") or "powershell"
        return [executable, "-NoProfile", "-NonInteractive", "-Command", command]
    if sys.platform == "win32":
        return [os.environ.get("COMSPEC", "cmd.exe"), "/c", command]
    return ["/bin/sh", "-c", command]


async def read_line(stream: asyncio.StreamReader) -> bytes:
    """Read one line, including lines longer than the stream limit."""

    parts: list[bytes] = []
    while True:
        try:
            parts.append(await stream.readuntil(b"\n"))
        except asyncio.IncompleteReadError as exc:
            parts.append(exc.partial)
        except asyncio.LimitOverrunError as exc:
            # Drain what is buffered and keep looking for the newline.
            parts.append(await stream.read(exc.consumed))
            continue
        return b"".join(parts)


def kill_process_tree(pid: int) -> None:
    """Kill a process and all of its descendants."""

    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return
    try:
        children = parent.children(recursive=True)
    except psutil.NoSuchProcess:
        children = []
    for child in children:
        try:
            child.kill()
        except psutil.NoSuchProcess:
            continue
    try:
        parent.kill()
    except psutil.NoSuchProcess:
        return


class SubprocessExecutor:
    """Run shell commands with streamed output and a bounded lifetime."""

    def __init__(self) -> None:
        self.output_received = Signal("cmdialog.output_received")

    def on_output(self, handler: OutputHandler) -> Callable[[], None]:
        """Subscribe ``handler(command, line, is_error)``; returns an unsubscribe callable."""

        def _receiver(sender: Any, *, command: str, line: str, is_error: bool) -> None:
            handler(command, line, is_error)

        self.output_received.connect(_receiver, weak=False)
        return lambda: self.output_received.disconnect(_receiver)

    async def execute(
        self,
        command: str,
        *,
        shell: ShellKind = ShellKind.SYSTEM,
        working_directory: str | os.PathLike[str] | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        capture_only: bool = False,
    ) -> CommandExecutionResult:
        if not is_command_safe(command):
            logger.warning("executor.unsafe_command command={!r}", command)

        started_at = datetime.now(UTC)
        argv = build_shell_argv(shell, command)
        stdout_lines: list[str] = []
        stderr_lines: list[str] = []

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=os.fspath(working_directory) if working_directory else None,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=STREAM_LIMIT_BYTES,
            )
        except (OSError, ValueError) as exc:
            logger.error("executor.launch_failed command={!r} error={}", command, exc)
            return CommandExecutionResult(
                command=command,
                shell=str(shell),
                exit_code=-1,
                success=False,
                timed_out=False,
                stdout="",
                stderr=str(exc),
                started_at=started_at,
                finished_at=datetime.now(UTC),
                error=str(exc),
            )

        logger.info("executor.start pid={} shell={} command={!r}", process.pid, shell, command)
        timed_out = False
        error: str | None = None
        try:
            async with asyncio.timeout(timeout_seconds):
                await asyncio.gather(
                    self._pump(process.stdout, stdout_lines, command, is_error=False, capture_only=capture_only),
                    self._pump(process.stderr, stderr_lines, command, is_error=True, capture_only=capture_only),
                )
                await process.wait()
        except TimeoutError:
            timed_out = True
            logger.warning("executor.timeout pid={} after={}s command={!r}", process.pid, timeout_seconds, command)
            kill_process_tree(process.pid)
            await process.wait()
        except Exception as exc:
            error = str(exc)
            logger.exception("executor.stream_failed pid={} command={!r}", process.pid, command)
            kill_process_tree(process.pid)
            await process.wait()
        except BaseException:
            kill_process_tree(process.pid)
            raise

        exit_code = process.returncode if process.returncode is not None else -1
        result = CommandExecutionResult(
            command=command,
            shell=str(shell),
            exit_code=exit_code,
            success=not timed_out and error is None and exit_code == 0,
            timed_out=timed_out,
            stdout="".join(f"{line}\n" for line in stdout_lines),
            stderr="".join(f"{line}\n" for line in stderr_lines),
            started_at=started_at,
            finished_at=datetime.now(UTC),
            pid=process.pid,
            error=error,
        )
        logger.info("executor.done {}", result)
        return result

    async def execute_powershell(self, script: str, **kwargs: Any) -> CommandExecutionResult:
        return await self.execute(script, shell=ShellKind.POWERSHELL, **kwargs)

    async def execute_and_capture(self, command: str, **kwargs: Any) -> CommandExecutionResult:
        return await self.execute(command, capture_only=True, **kwargs)

    async def _pump(
        self,
        stream: asyncio.StreamReader | None,
        sink: list[str],
        command: str,
        *,
        is_error: bool,
        capture_only: bool,
    ) -> None:
        if stream is None:
            return
        while True:
            raw = await read_line(stream)
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            if not line:
                continue
            sink.append(line)
            if not capture_only:
                self.output_received.send(self, command=command, line=line, is_error=is_error)
