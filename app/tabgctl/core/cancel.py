"""Cooperative cancellation for installation runs.

A single CancellationToken is shared by the orchestrator and every
component it drives. Long waits race against the token so a cancel
request interrupts them promptly.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from tabgctl.core.errors import CancellationRequested

T = TypeVar("T")


class CancellationToken:
    """Signal shared across one install run.

    Cancelling is idempotent. The token may be cancelled from a signal
    handler running on the event loop thread.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise CancellationRequested if cancellation has been requested."""
        if self._event.is_set():
            raise CancellationRequested("Installation cancelled")

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        await self._event.wait()


async def cancellable(awaitable: Awaitable[T], token: CancellationToken | None) -> T:
    """Await a coroutine, aborting early if the token is cancelled.

    Args:
        awaitable: The operation to run.
        token: Cancellation token to race against. None disables racing.

    Returns:
        The result of the awaitable.

    Raises:
        CancellationRequested: If the token fires before the awaitable finishes.
    """
    if token is None:
        return await awaitable
    token.raise_if_cancelled()

    work = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(token.wait())
    interrupted = False
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        # Also runs when the calling task itself is cancelled
        interrupted = not work.done()
        for task in (work, waiter):
            task.cancel()
        await asyncio.gather(work, waiter, return_exceptions=True)

    if interrupted:
        raise CancellationRequested("Installation cancelled")
    return work.result()
