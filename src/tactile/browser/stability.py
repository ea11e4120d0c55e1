"""
Stability gate - wait until an element stops moving and is on screen.

Layout may still be settling (transitions, reflow, smooth scrolling) when
geometry is first queried. The gate samples the box model once per animation
frame and only hands it out when two consecutive samples agree and the
element is inside the viewport.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from tactile.browser.cancellation import CancellationToken, race_cancellation
from tactile.config import DEFAULT_STABILITY_TOLERANCE
from tactile.exceptions import ElementNotRenderedError, WaitForStabilityTimeoutError
from tactile.geometry.box_model import BoxModel
from tactile.geometry.point import Point, Viewport, quads_close

if TYPE_CHECKING:
    from tactile.browser.handle import RemoteHandle
    from tactile.browser.protocol import RemoteChannel
    from tactile.geometry.box_model import BoxModelResolver

logger = logging.getLogger(__name__)


class StabilityGate:
    """
    Polls a BoxModelResolver until the element is stable and visible.

    Usage:
        gate = StabilityGate(resolver, channel)
        model = await gate.wait(handle, timeout=5.0, cancellation=token)
    """

    def __init__(
        self,
        resolver: "BoxModelResolver",
        channel: "RemoteChannel",
        tolerance: float = DEFAULT_STABILITY_TOLERANCE,
    ):
        self._resolver = resolver
        self._channel = channel
        self._tolerance = tolerance

    def is_stable(self, previous: BoxModel, current: BoxModel) -> bool:
        """Two samples are stable when their content quads match within tolerance."""
        return quads_close(previous.content, current.content, self._tolerance)

    @staticmethod
    def is_visible(model: BoxModel, viewport: Viewport) -> bool:
        """Non-empty box whose center lies inside the viewport."""
        box = model.bounding_box
        if box.area <= 0:
            return False
        center = Point(x=box.center_x, y=box.center_y)
        return viewport.as_bounding_box().contains(center)

    async def wait(
        self,
        handle: "RemoteHandle",
        timeout: float,
        *,
        initial: BoxModel | None = None,
        viewport: Viewport | None = None,
        cancellation: CancellationToken | None = None,
    ) -> BoxModel:
        """
        Wait for the element behind ``handle`` to become stable and visible.

        Args:
            handle: Element to watch.
            timeout: Maximum time to wait in seconds. 0 samples at most once.
            initial: A sample already taken by the caller, compared to the first poll.
            viewport: Viewport size; queried from the channel when omitted.
            cancellation: Token observed at every suspension point.

        Returns:
            The last (stable) box model sample.

        Raises:
            ElementNotRenderedError: The element left the render tree.
            WaitForStabilityTimeoutError: The timeout elapsed first.
            ElementHandleCancelledError: The token was cancelled.
        """
        loop = asyncio.get_running_loop()
        start = loop.time()
        deadline = start + timeout
        previous = initial

        def remaining() -> float:
            return deadline - loop.time()

        def timed_out() -> WaitForStabilityTimeoutError:
            # Teardown takes precedence over an expired timeout
            if cancellation is not None:
                cancellation.raise_if_cancelled(handle)
            return WaitForStabilityTimeoutError(handle, loop.time() - start, previous)

        if viewport is None:
            finished, viewport = await race_cancellation(
                self._channel.get_viewport(), cancellation, remaining(), handle
            )
            if not finished:
                raise timed_out()

        samples = 0
        while True:
            if previous is not None:
                if remaining() <= 0:
                    raise timed_out()
                finished, _ = await race_cancellation(
                    self._channel.wait_for_animation_frame(handle.reference),
                    cancellation,
                    remaining(),
                    handle,
                )
                if not finished:
                    raise timed_out()

            finished, model = await race_cancellation(
                self._resolver.resolve(handle), cancellation, remaining(), handle
            )
            if not finished:
                raise timed_out()
            if model is None:
                raise ElementNotRenderedError(handle, loop.time() - start)
            samples += 1

            if previous is not None and self.is_stable(previous, model):
                if self.is_visible(model, viewport):
                    logger.debug(
                        f"{handle!r} stable after {samples} samples "
                        f"({loop.time() - start:.3f}s)"
                    )
                    return model
                logger.debug(f"{handle!r} stable but outside viewport {viewport}")

            previous = model
