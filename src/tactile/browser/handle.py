"""
Remote handles - references to live objects inside the browser.

A handle is bound to one execution context. It becomes unusable once the
context is destroyed or the handle is disposed.
"""

import logging
from typing import TYPE_CHECKING, Any, Literal

from tactile.browser.protocol import NodeReference
from tactile.exceptions import HandleDisposedError, ProtocolError

if TYPE_CHECKING:
    from tactile.browser.protocol import RemoteChannel
    from tactile.context import InteractionContext
    from tactile.geometry.box_model import BoxModel
    from tactile.geometry.point import BoundingBox, Point

logger = logging.getLogger(__name__)


class RemoteHandle:
    """
    Opaque reference to an in-page object.

    Disposal is idempotent. Any query issued after (or racing) disposal
    fails with HandleDisposedError.
    """

    def __init__(self, channel: "RemoteChannel", reference: NodeReference):
        self._channel = channel
        self._reference = reference
        self._disposed = False

    @property
    def reference(self) -> NodeReference:
        return self._reference

    @property
    def execution_context_id(self) -> int | None:
        return self._reference.execution_context_id

    @property
    def disposed(self) -> bool:
        return self._disposed

    def ensure_alive(self) -> None:
        if self._disposed:
            raise HandleDisposedError(self)

    def invalidate(self) -> None:
        """Mark the handle dead without talking to the browser (context destroyed)."""
        self._disposed = True

    async def dispose(self) -> None:
        """Release the remote object. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True

        try:
            await self._channel.release_object(self._reference)
        except ProtocolError as e:
            logger.warning(f"Error releasing {self!r}: {e}")

    def __repr__(self) -> str:
        node = self._reference.backend_node_id
        state = " disposed" if self._disposed else ""
        return f"<{type(self).__name__} object_id={self._reference.object_id} node={node}{state}>"


class ElementHandle(RemoteHandle):
    """
    Handle to a DOM element with geometry queries and input helpers.

    Usage:
        element = await session.element(backend_node_id=42)
        await element.click(offset={"x": 5, "y": 5})
        await element.press("Enter")
    """

    def __init__(self, context: "InteractionContext", reference: NodeReference):
        super().__init__(context.channel, reference)
        self._context = context
        context.track(self)

    @property
    def context(self) -> "InteractionContext":
        return self._context

    async def box_model(self) -> "BoxModel | None":
        """Current box model, or None if the element is not rendered."""
        return await self._context.resolver.resolve(self)

    async def bounding_box(self) -> "BoundingBox | None":
        """Axis-aligned box around the border quad, or None if not rendered."""
        model = await self.box_model()
        if model is None:
            return None
        return model.bounding_box

    async def wait_for_stable(self, timeout: float | None = None) -> "BoxModel":
        """Wait until the element stops moving and is visible."""
        return await self._context.dispatcher.wait_for_stable(self, timeout=timeout)

    async def clickable_point(self, offset: Any = None, timeout: float | None = None) -> "Point":
        """Point a click would land on, after waiting for stability."""
        return await self._context.dispatcher.clickable_point(self, offset=offset, timeout=timeout)

    async def click(
        self,
        offset: Any = None,
        button: Literal["left", "right", "middle", "back", "forward"] = "left",
        click_count: int = 1,
        delay: float | None = None,
        timeout: float | None = None,
        wait_for_attached: bool = False,
    ) -> "Point":
        return await self._context.dispatcher.click(
            self,
            offset=offset,
            button=button,
            click_count=click_count,
            delay=delay,
            timeout=timeout,
            wait_for_attached=wait_for_attached,
        )

    async def hover(self, offset: Any = None, timeout: float | None = None) -> "Point":
        return await self._context.dispatcher.hover(self, offset=offset, timeout=timeout)

    async def tap(self, offset: Any = None, timeout: float | None = None) -> "Point":
        """Tap the element on the touchscreen."""
        return await self._context.dispatcher.tap(self, offset=offset, timeout=timeout)

    async def drag_and_drop(
        self,
        target: "ElementHandle",
        delay: float | None = None,
        timeout: float | None = None,
    ) -> "Point":
        """Drag this element onto ``target``."""
        return await self._context.dispatcher.drag_and_drop(
            self, target, delay=delay, timeout=timeout
        )

    async def is_intersecting_viewport(self, threshold: float = 0.0) -> bool:
        """
        Whether the element intersects the viewport.

        Args:
            threshold: Visible fraction the element must exceed. 1 means the
                element must be fully visible.
        """
        self.ensure_alive()
        ratio = await self._channel.intersection_ratio(self._reference)
        self.ensure_alive()
        if threshold == 1:
            return ratio == 1
        return ratio > threshold

    async def focus(self, timeout: float | None = None) -> None:
        await self._context.dispatcher.focus(self, timeout=timeout)

    async def press(
        self,
        key: str,
        delay: float | None = None,
        text: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Focus the element and press one key."""
        await self._context.dispatcher.press(self, key, delay=delay, text=text, timeout=timeout)

    async def type_text(
        self, text: str, delay: float | None = None, timeout: float | None = None
    ) -> None:
        """Focus the element and type text character by character."""
        await self._context.dispatcher.type_text(self, text, delay=delay, timeout=timeout)
