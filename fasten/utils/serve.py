import asyncio
from collections.abc import Awaitable
import signal
from typing import TypeVar

from loguru import logger

from fasten.exceptions import RunInterruptedError

T = TypeVar("T")


async def run_until_signal(coro: Awaitable[T]) -> T:
    """
    Run ``coro`` as a task that SIGINT/SIGTERM cancel.

    Cancellation propagates into whatever the task is awaiting, so an
    in-flight external command is killed before this returns.

    Raises:
        RunInterruptedError: If a signal cancelled the run
    """
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(coro)
    interrupted = False

    def _cancel(signum: int) -> None:
        nonlocal interrupted
        if not task.done():
            logger.warning(
                "[Serve] {} received, cancelling run", signal.Signals(signum).name
            )
            interrupted = True
            task.cancel()

    installed = []
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, _cancel, signum)
            installed.append(signum)
        except (NotImplementedError, RuntimeError) as e:
            logger.debug("[Serve] Cannot install handler for {}: {}", signum, e)

    try:
        return await task
    except asyncio.CancelledError:
        if interrupted:
            raise RunInterruptedError("Run interrupted by signal") from None
        raise
    finally:
        # Always remove handlers to avoid leaks
        for signum in installed:
            loop.remove_signal_handler(signum)
