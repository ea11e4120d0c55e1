"""
Remote channel contract.

Everything the geometry and input layers need from the browser goes through
this interface. ``CDPChannel`` implements it over cdp-use; tests use an
in-memory fake.
"""

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Protocol

from tactile.config import KeyPhase
from tactile.geometry.point import Point, Viewport

if TYPE_CHECKING:
    from tactile.input.key_definitions import KeyDescription

MouseEventType = Literal["mouseMoved", "mousePressed", "mouseReleased", "mouseWheel"]
TouchEventType = Literal["touchStart", "touchMove", "touchEnd", "touchCancel"]
DragEventType = Literal["dragEnter", "dragOver", "drop", "dragCancel"]


@dataclass(frozen=True)
class NodeReference:
    """Opaque identity of a remote object as the protocol knows it."""

    object_id: str
    backend_node_id: int | None = None
    execution_context_id: int | None = None


class RemoteChannel(Protocol):
    """Query and dispatch operations against one page."""

    async def get_box_model(self, reference: NodeReference) -> dict[str, Any] | None:
        """Raw ``DOM.getBoxModel`` model, or None if the node is not rendered."""
        ...

    async def get_viewport(self) -> Viewport:
        ...

    async def get_frame_offset(self) -> Point | None:
        """Translation from this channel's frame to the top-level viewport, if any."""
        ...

    async def wait_for_animation_frame(self, reference: NodeReference) -> None:
        """Resolve after the page renders its next animation frame."""
        ...

    async def scroll_into_view(self, reference: NodeReference) -> None:
        ...

    async def focus(self, reference: NodeReference) -> None:
        ...

    async def release_object(self, reference: NodeReference) -> None:
        ...

    async def intersection_ratio(self, reference: NodeReference) -> float:
        """Fraction of the node inside the viewport, per IntersectionObserver."""
        ...

    async def dispatch_mouse_event(
        self,
        event_type: MouseEventType,
        point: Point,
        *,
        button: str = "none",
        buttons: int = 0,
        click_count: int = 0,
        modifiers: int = 0,
        delta_x: float = 0,
        delta_y: float = 0,
    ) -> None:
        ...

    async def dispatch_key_event(
        self,
        description: "KeyDescription",
        phase: KeyPhase,
        modifiers: int,
        auto_repeat: bool = False,
    ) -> None:
        ...

    async def insert_text(self, text: str) -> None:
        ...

    async def dispatch_touch_event(
        self,
        event_type: TouchEventType,
        touch_points: list[dict[str, Any]],
        modifiers: int = 0,
    ) -> None:
        ...

    async def intercept_drag(self) -> "asyncio.Future[dict[str, Any]]":
        """Arm drag interception; the future resolves with the next drag's DragData."""
        ...

    async def dispatch_drag_event(
        self,
        event_type: DragEventType,
        point: Point,
        data: dict[str, Any],
        modifiers: int = 0,
    ) -> None:
        ...
