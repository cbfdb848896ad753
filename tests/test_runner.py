import asyncio
from pathlib import Path

import pytest

from conftest import process_alive
from fasten.exceptions import CommandLaunchError, CommandTimeoutError, NonZeroExitError
from fasten.exercise.runner import (
    Command,
    CommandStatus,
    run_command,
    split_command_line,
)

SLEEPER = """
import os, sys, time
with open(sys.argv[1], "w") as f:
    f.write(str(os.getpid()))
time.sleep(60)
"""


async def wait_for_file(path: Path, timeout: float = 10.0) -> str:
    deadline = asyncio.get_running_loop().time() + timeout
    while asyncio.get_running_loop().time() < deadline:
        if path.exists() and path.read_text():
            return path.read_text()
        await asyncio.sleep(0.05)
    raise AssertionError(f"{path} was never written")


def test_split_command_line_honours_quotes():
    assert split_command_line("make -j 4 'CFLAGS=-O2 -g'") == ["make", "-j", "4", "CFLAGS=-O2 -g"]


@pytest.mark.parametrize("line", ["", "   ", "echo 'unterminated"])
def test_split_command_line_rejects_unusable_lines(line):
    with pytest.raises(CommandLaunchError):
        split_command_line(line)


async def test_success_returns_stdout(script):
    result = await run_command(script("print('3.25')"), timeout_ms=10_000)
    assert result.status is CommandStatus.SUCCEEDED
    assert result.ok
    assert result.returncode == 0
    assert result.stdout.strip() == "3.25"
    assert result.raise_for_status() is result


async def test_arguments_are_passed(script):
    command = script("import sys; print(' '.join(sys.argv[1:]))", "a b", "c")
    result = await run_command(command, timeout_ms=10_000)
    assert result.stdout.strip() == "a b c"


async def test_non_zero_exit_is_reported_not_raised(script):
    command = script("import sys; sys.stderr.write('boom'); sys.exit(3)")
    result = await run_command(command, timeout_ms=10_000)
    assert result.status is CommandStatus.FAILED
    assert result.returncode == 3
    assert "boom" in result.stderr
    with pytest.raises(NonZeroExitError) as excinfo:
        result.raise_for_status()
    assert excinfo.value.returncode == 3


async def test_timeout_kills_process(script, tmp_path):
    pid_file = tmp_path / "pid"
    result = await run_command(script(SLEEPER, str(pid_file)), timeout_ms=500)
    assert result.status is CommandStatus.TIMED_OUT
    assert result.returncode is None
    pid = int(pid_file.read_text())
    assert not process_alive(pid)
    with pytest.raises(CommandTimeoutError):
        result.raise_for_status()


async def test_timeout_kills_grandchildren(tmp_path):
    pid_file = tmp_path / "pid"
    command = f"sh -c 'sleep 60 & echo $! > {pid_file}; wait'"
    result = await run_command(command, timeout_ms=500)
    assert result.status is CommandStatus.TIMED_OUT
    await asyncio.sleep(0.2)
    assert not process_alive(int(pid_file.read_text()))


async def test_timeout_kills_grandchild_of_exited_parent(tmp_path):
    pid_file = tmp_path / "pid"
    # The shell exits at once; the backgrounded sleep keeps stdout open.
    command = f"sh -c 'sleep 60 & echo $! > {pid_file}'"
    result = await run_command(command, timeout_ms=700)
    assert result.status is CommandStatus.TIMED_OUT
    await asyncio.sleep(0.2)
    assert not process_alive(int(pid_file.read_text()))


async def test_success_kills_leftover_background_processes(tmp_path):
    pid_file = tmp_path / "pid"
    command = f"sh -c 'sleep 60 > /dev/null 2>&1 & echo $! > {pid_file}'"
    result = await run_command(command, timeout_ms=10_000)
    assert result.ok
    await asyncio.sleep(0.2)
    assert not process_alive(int(pid_file.read_text()))


async def test_missing_executable_raises_launch_error(tmp_path):
    with pytest.raises(CommandLaunchError) as excinfo:
        await run_command(str(tmp_path / "does-not-exist"), timeout_ms=1000)
    assert "does-not-exist" in excinfo.value.command


async def test_large_output_does_not_deadlock(script):
    command = script("import sys; sys.stdout.write('x' * 2_000_000); sys.stderr.write('y' * 2_000_000)")
    result = await run_command(command, timeout_ms=20_000)
    assert result.ok
    assert len(result.stdout) == 2_000_000
    assert len(result.stderr) == 2_000_000


async def test_cancellation_kills_child(script, tmp_path):
    pid_file = tmp_path / "pid"
    task = asyncio.create_task(run_command(script(SLEEPER, str(pid_file)), timeout_ms=60_000))
    pid = int(await wait_for_file(pid_file))
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert not process_alive(pid)


async def test_working_directory(script, tmp_path):
    workdir = tmp_path / "work"
    workdir.mkdir()
    result = await run_command(script("import os; print(os.getcwd())"), 10_000, cwd=workdir)
    assert Path(result.stdout.strip()).resolve() == workdir.resolve()


async def test_command_object_runs_with_its_settings(script, tmp_path):
    command = Command("fitness", script("print(1)"), timeout_ms=10_000, cwd=tmp_path)
    result = await command()
    assert result.ok
    assert "fitness" in repr(command)
