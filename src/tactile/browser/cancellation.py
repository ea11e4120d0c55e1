"""
Cancellation - signal that the page or frame owning a handle was torn down.

Tokens are owned by whoever manages the context lifecycle (the context
watchdog, or the caller). Geometry and input code only observe them.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from tactile.exceptions import ElementHandleCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """
    One-shot cancellation flag backed by an asyncio.Event.

    Usage:
        token = CancellationToken()
        ...
        token.cancel("frame navigated")
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "context destroyed") -> None:
        """Cancel the token. Later calls keep the first reason."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logger.debug(f"Cancellation requested: {reason}")

    async def wait(self) -> None:
        """Wait until the token is cancelled."""
        await self._event.wait()

    def raise_if_cancelled(self, handle: Any = None) -> None:
        if self._event.is_set():
            raise ElementHandleCancelledError(handle, self._reason)


async def race_cancellation(
    awaitable: Awaitable[T],
    cancellation: CancellationToken | None,
    timeout: float | None,
    handle: Any = None,
) -> tuple[bool, T | None]:
    """
    Await ``awaitable`` while watching a cancellation token and a timeout.

    An unfinished awaitable is cancelled and allowed to run its cleanup
    (``finally`` blocks that release pressed buttons or keys) before this
    returns or raises.

    Returns:
        (True, result) if the awaitable finished in time, (False, None) on timeout.

    Raises:
        ElementHandleCancelledError: If the token is cancelled before or while
            waiting, even when the timeout also expired.
    """
    if cancellation is not None:
        cancellation.raise_if_cancelled(handle)

    step = asyncio.ensure_future(awaitable)
    waiters: set[asyncio.Future] = {step}
    if cancellation is not None:
        waiters.add(asyncio.ensure_future(cancellation.wait()))

    try:
        done, _ = await asyncio.wait(
            waiters,
            timeout=None if timeout is None else max(timeout, 0),
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        for waiter in waiters:
            if not waiter.done():
                waiter.cancel()
        if not step.done():
            await asyncio.wait({step})

    if cancellation is not None:
        cancellation.raise_if_cancelled(handle)

    if step not in done:
        return False, None
    return True, step.result()
