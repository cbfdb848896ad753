from __future__ import annotations

import asyncio
from enum import Enum
import os
from pathlib import Path
import shlex
import signal
import time

from loguru import logger
from pydantic import BaseModel, Field

from fasten.exceptions import CommandLaunchError, CommandTimeoutError, NonZeroExitError

KILL_WAIT_SECONDS = 5.0


class CommandStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class CommandResult(BaseModel):
    """Outcome of one external command invocation."""

    command: str
    status: CommandStatus
    returncode: int | None = Field(
        default=None, description="Exit status, None when killed on timeout"
    )
    stdout: str = ""
    stderr: str = ""
    duration: float = Field(default=0.0, description="Wall time in seconds")

    @property
    def ok(self) -> bool:
        return self.status is CommandStatus.SUCCEEDED

    def raise_for_status(self) -> CommandResult:
        if self.status is CommandStatus.TIMED_OUT:
            raise CommandTimeoutError(
                f"Command timed out: {self.command}",
                command=self.command,
                stderr=self.stderr,
            )
        if self.status is CommandStatus.FAILED:
            raise NonZeroExitError(
                f"Command failed with exit code {self.returncode}: {self.command}",
                command=self.command,
                returncode=self.returncode if self.returncode is not None else -1,
                stderr=self.stderr,
            )
        return self


def split_command_line(command_line: str) -> list[str]:
    try:
        argv = shlex.split(command_line)
    except ValueError as e:
        raise CommandLaunchError(
            f"Cannot parse command line: {e}", command=command_line
        ) from e
    if not argv:
        raise CommandLaunchError("Empty command line", command=command_line)
    return argv


def _kill(proc: asyncio.subprocess.Process) -> None:
    """Kill the child's process group, falling back to the child alone.

    The group outlives the child when a grandchild is left behind, so it is
    killed even after the child has exited.
    """
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        if proc.returncode is not None:
            return
        try:
            proc.kill()
        except ProcessLookupError:
            logger.debug("[ProcessRunner] Process {} already exited", proc.pid)


async def _reap(proc: asyncio.subprocess.Process) -> None:
    _kill(proc)
    try:
        await asyncio.wait_for(proc.wait(), timeout=KILL_WAIT_SECONDS)
    except asyncio.TimeoutError:
        logger.error(
            "[ProcessRunner] Process {} did not exit after kill; it may be stuck "
            "in an uninterruptible state",
            proc.pid,
        )


async def run_command(
    command_line: str,
    timeout_ms: int,
    cwd: Path | str | None = None,
) -> CommandResult:
    """
    Run an external command, capturing its output, under a timeout.

    Args:
        command_line: Executable followed by its arguments, shell-quoted
        timeout_ms: Time allowed before the process is killed, in milliseconds
        cwd: Working directory for the child (defaults to ours)

    Returns:
        CommandResult: SUCCEEDED on exit code 0, FAILED on any other exit code,
        TIMED_OUT when the process had to be killed.

    Raises:
        CommandLaunchError: If the executable could not be started
    """
    argv = split_command_line(command_line)
    started = time.monotonic()

    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
            start_new_session=True,
        )
    except OSError as e:
        raise CommandLaunchError(
            f"Cannot start {argv[0]!r}: {e}", command=command_line
        ) from e

    try:
        stdout, stderr = await asyncio.wait_for(
            proc.communicate(), timeout=timeout_ms / 1000.0
        )
    except asyncio.TimeoutError:
        logger.warning(
            "[ProcessRunner] Timed out after {} ms, killing: {}", timeout_ms, command_line
        )
        await _reap(proc)
        return CommandResult(
            command=command_line,
            status=CommandStatus.TIMED_OUT,
            duration=time.monotonic() - started,
        )
    except asyncio.CancelledError:
        logger.info("[ProcessRunner] Cancelled, killing: {}", command_line)
        await asyncio.shield(_reap(proc))
        raise
    finally:
        _kill(proc)

    returncode = proc.returncode
    result = CommandResult(
        command=command_line,
        status=CommandStatus.SUCCEEDED if returncode == 0 else CommandStatus.FAILED,
        returncode=returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
        duration=time.monotonic() - started,
    )
    if not result.ok:
        logger.debug(
            "[ProcessRunner] Exit code {} from {}: {}",
            returncode,
            command_line,
            result.stderr.strip()[-2000:],
        )
    return result


class Command:
    """A named external command bound to its timeout and working directory."""

    def __init__(
        self,
        name: str,
        command_line: str,
        timeout_ms: int,
        cwd: Path | str | None = None,
    ):
        self.name = name
        self.command_line = command_line
        self.timeout_ms = timeout_ms
        self.cwd = cwd

    async def __call__(self) -> CommandResult:
        logger.debug("[Command:{}] Running: {}", self.name, self.command_line)
        result = await run_command(self.command_line, self.timeout_ms, cwd=self.cwd)
        logger.debug(
            "[Command:{}] {} in {:.2f}s", self.name, result.status.value, result.duration
        )
        return result

    def __repr__(self) -> str:
        return f"Command({self.name!r}, {self.command_line!r}, timeout_ms={self.timeout_ms})"
