import sys
from pathlib import Path

import psutil
import pytest

from cmdialog.core.executor import SubprocessExecutor, build_shell_argv, is_command_safe
from cmdialog.core.types import ShellKind

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses /bin/sh commands")


@pytest.fixture
def executor() -> SubprocessExecutor:
    return SubprocessExecutor()


def _record(executor: SubprocessExecutor) -> list[tuple[str, bool]]:
    events: list[tuple[str, bool]] = []
    executor.on_output(lambda _command, line, is_error: events.append((line, is_error)))
    return events


@posix_only
@pytest.mark.asyncio
async def test_execute_streams_output(executor: SubprocessExecutor) -> None:
    events = _record(executor)

    result = await executor.execute("echo one; echo two; echo oops 1>&2")

    assert result.success is True
    assert result.exit_code == 0
    assert result.timed_out is False
    assert result.stdout == "one\ntwo\n"
    assert result.stderr == "oops\n"
    assert ("one", False) in events
    assert ("two", False) in events
    assert ("oops", True) in events
    assert [line for line, is_error in events if not is_error] == ["one", "two"]
    assert result.duration.total_seconds() >= 0


@posix_only
@pytest.mark.asyncio
async def test_execute_non_zero_exit(executor: SubprocessExecutor) -> None:
    result = await executor.execute("exit 7")

    assert result.success is False
    assert result.exit_code == 7
    assert result.timed_out is False


@posix_only
@pytest.mark.asyncio
async def test_timeout_kills_process(executor: SubprocessExecutor) -> None:
    result = await executor.execute("sleep 5", timeout_seconds=0.5)

    assert result.timed_out is True
    assert result.success is False
    assert result.pid is not None
    assert not psutil.pid_exists(result.pid)
    assert result.duration.total_seconds() < 4


@posix_only
@pytest.mark.asyncio
async def test_capture_only_sends_no_events(executor: SubprocessExecutor) -> None:
    events = _record(executor)

    result = await executor.execute_and_capture("echo quiet")

    assert result.stdout == "quiet\n"
    assert events == []


@pytest.mark.asyncio
async def test_launch_failure_is_reported(executor: SubprocessExecutor, tmp_path: Path) -> None:
    result = await executor.execute("echo never", working_directory=tmp_path / "missing")

    assert result.success is False
    assert result.exit_code == -1
    assert result.pid is None
    assert result.error
    assert result.stderr == result.error


@pytest.mark.asyncio
async def test_unsubscribe_stops_events(executor: SubprocessExecutor) -> None:
    events: list[str] = []
    unsubscribe = executor.on_output(lambda _command, line, _is_error: events.append(line))
    unsubscribe()

    executor.output_received.send(executor, command="x", line="ignored", is_error=False)
    assert events == []


@pytest.mark.parametrize(
    ("command", "safe"),
    [
        ("echo hello", True),
        ("ipconfig /all", True),
        ("format C:", False),
        ("shutdown /s /t 0", False),
        ("NET USER bob /add", False),
        ("   ", False),
    ],
)
def test_is_command_safe(command: str, safe: bool) -> None:
    assert is_command_safe(command) is safe


def test_build_shell_argv() -> None:
    powershell = build_shell_argv(ShellKind.POWERSHELL, "Get-Date")
    assert powershell[1:] == ["-NoProfile", "-NonInteractive", "-Command", "Get-Date"]

    system = build_shell_argv(ShellKind.SYSTEM, "echo hi")
    if sys.platform == "win32":
        assert system[1:] == ["/c", "echo hi"]
    else:
        assert system == ["/bin/sh", "-c", "echo hi"]


@posix_only
@pytest.mark.asyncio
async def test_line_longer_than_stream_limit_is_captured(executor: SubprocessExecutor) -> None:
    events = _record(executor)

    result = await executor.execute("head -c 2000000 /dev/zero | tr '\\0' a; echo; echo tail")

    assert result.success is True
    assert result.error is None
    assert result.stdout == "a" * 2_000_000 + "\ntail\n"
    assert [len(line) for line, _ in events] == [2_000_000, 4]


@posix_only
@pytest.mark.asyncio
async def test_failing_output_handler_returns_failed_result(executor: SubprocessExecutor) -> None:
    def _explode(_command: str, _line: str, _is_error: bool) -> None:
        raise RuntimeError("subscriber broke")

    executor.on_output(_explode)

    result = await executor.execute("echo one; sleep 5")

    assert result.success is False
    assert result.timed_out is False
    assert result.error == "subscriber broke"
    assert not psutil.pid_exists(result.pid)
