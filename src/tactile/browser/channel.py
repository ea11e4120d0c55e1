"""
CDP Channel - RemoteChannel implementation over a cdp-use CDPClient.

Translates geometry queries and input events into Chrome DevTools Protocol
commands on one attached target session. A channel for an out-of-process
iframe is a child of the page channel: its box models are shifted by the
iframe's position and its input goes through the page session.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, TypeVar

from tactile.browser.protocol import DragEventType, MouseEventType, NodeReference, TouchEventType
from tactile.config import DEFAULT_VIEWPORT_HEIGHT, DEFAULT_VIEWPORT_WIDTH, KeyPhase
from tactile.exceptions import ProtocolError
from tactile.geometry.point import Point, Viewport
from tactile.logging.config import TactileLogger

if TYPE_CHECKING:
    from tactile.input.key_definitions import KeyDescription

logger = logging.getLogger(__name__)
cdp_log = TactileLogger(__name__)

T = TypeVar("T")

# DOM.getBoxModel error for nodes without a layout object
_NOT_RENDERED_MARKERS = ("Could not compute box model", "does not have a layout object")

_ANIMATION_FRAME_JS = """
    function() {
        return new Promise(resolve => requestAnimationFrame(() => resolve()));
    }
"""

_SCROLL_INTO_VIEW_JS = """
    function() {
        if (!this.isConnected) return;
        this.scrollIntoView({block: 'center', inline: 'center', behavior: 'instant'});
    }
"""

_INTERSECTION_RATIO_JS = """
    function() {
        return new Promise(resolve => {
            const observer = new IntersectionObserver(entries => {
                resolve(entries[0].intersectionRatio);
                observer.disconnect();
            });
            observer.observe(this);
        });
    }
"""


class CDPChannel:
    """
    Remote query and dispatch channel for one CDP target session.

    Usage:
        channel = CDPChannel(session.cdp_client, session.session_id)
        await channel.load_frame_tree()
        reference = await channel.resolve_node(backend_node_id)
        model = await channel.get_box_model(reference)
    """

    def __init__(
        self,
        client: Any,
        session_id: str | None = None,
        parent: "CDPChannel | None" = None,
        frame_id: str | None = None,
    ):
        self._client = client
        self._session_id = session_id
        self._parent = parent
        self._frame_id = frame_id

        # frameId -> id of the frame's default (main world) execution context
        self._contexts: dict[str, int] = {}

        self._intercepting_drags = False
        self._drag_waiters: list[asyncio.Future] = []

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def frame_id(self) -> str | None:
        """Frame this channel's session renders (the main frame for a page)."""
        return self._frame_id

    @property
    def parent(self) -> "CDPChannel | None":
        return self._parent

    def child(self, session_id: str, frame_id: str) -> "CDPChannel":
        """Channel for an out-of-process iframe attached on the same client."""
        return CDPChannel(self._client, session_id, parent=self, frame_id=frame_id)

    def _top(self) -> "CDPChannel":
        channel = self
        while channel._parent is not None:
            channel = channel._parent
        return channel

    @property
    def _input_session(self) -> str | None:
        # Input events always go to the top-level page
        return self._top()._session_id

    async def _call(self, method: str, awaitable: Awaitable[T]) -> T:
        """Await a CDP command, turning transport failures into ProtocolError."""
        cdp_log.cdp(method)
        try:
            return await awaitable
        except Exception as e:
            raise ProtocolError(method, str(e)) from e

    # ===== Execution contexts =====

    async def load_frame_tree(self) -> str:
        """Record the session's main frame id. Returns it."""
        result = await self._call(
            "Page.getFrameTree",
            self._client.send.Page.getFrameTree(session_id=self._session_id),
        )
        self._frame_id = result["frameTree"]["frame"]["id"]
        return self._frame_id

    def remember_context(self, context: dict[str, Any]) -> None:
        """Track a ``Runtime.ExecutionContextDescription`` if it is a frame's main world."""
        aux = context.get("auxData") or {}
        if aux.get("isDefault") and aux.get("frameId"):
            self._contexts[aux["frameId"]] = context["id"]
            logger.debug(f"Frame {aux['frameId']} main world is context {context['id']}")

    def forget_context(self, execution_context_id: int | None = None) -> None:
        """Drop one tracked context, or all of them when the id is None."""
        if execution_context_id is None:
            self._contexts.clear()
            return
        for frame_id, context_id in list(self._contexts.items()):
            if context_id == execution_context_id:
                del self._contexts[frame_id]

    def execution_context_for(self, frame_id: str | None = None) -> int | None:
        """Main-world context id of a frame (default: this channel's frame)."""
        return self._contexts.get(frame_id or self._frame_id or "")

    # ===== Queries =====

    async def resolve_node(
        self, backend_node_id: int, frame_id: str | None = None
    ) -> NodeReference:
        """
        Get a remote object reference for a backend DOM node id.

        The object is created in the main world of ``frame_id`` (default: the
        channel's frame) when that context is known, so the reference records
        which execution context it dies with.

        Raises:
            ProtocolError: If the node cannot be resolved.
        """
        context_id = self.execution_context_for(frame_id)
        params: dict[str, Any] = {"backendNodeId": backend_node_id}
        if context_id is not None:
            params["executionContextId"] = context_id

        result = await self._call(
            "DOM.resolveNode",
            self._client.send.DOM.resolveNode(params, session_id=self._session_id),
        )
        object_id = result.get("object", {}).get("objectId")
        if not object_id:
            raise ProtocolError("DOM.resolveNode", f"no object for node {backend_node_id}")
        return NodeReference(
            object_id=object_id,
            backend_node_id=backend_node_id,
            execution_context_id=context_id,
        )

    async def get_box_model(self, reference: NodeReference) -> dict[str, Any] | None:
        try:
            result = await self._client.send.DOM.getBoxModel(
                {"objectId": reference.object_id},
                session_id=self._session_id,
            )
        except Exception as e:
            if any(marker in str(e) for marker in _NOT_RENDERED_MARKERS):
                logger.debug(f"Node {reference.object_id} has no box model: {e}")
                return None
            raise ProtocolError("DOM.getBoxModel", str(e)) from e

        return result.get("model")

    async def get_viewport(self) -> Viewport:
        """CSS layout viewport size of the top-level page, preferring cssLayoutViewport."""
        if self._parent is not None:
            return await self._parent.get_viewport()

        metrics = await self._call(
            "Page.getLayoutMetrics",
            self._client.send.Page.getLayoutMetrics(session_id=self._session_id),
        )
        layout = metrics.get("cssLayoutViewport") or metrics.get("layoutViewport") or {}
        return Viewport(
            width=layout.get("clientWidth", DEFAULT_VIEWPORT_WIDTH),
            height=layout.get("clientHeight", DEFAULT_VIEWPORT_HEIGHT),
        )

    async def get_frame_offset(self) -> Point | None:
        """
        Position of this channel's frame inside the top-level viewport.

        None for a page channel. For an out-of-process iframe, the top-left of
        the owner element's content box, summed over every ancestor iframe.
        """
        if self._parent is None or self._frame_id is None:
            return None

        offset = await self._parent.frame_owner_offset(self._frame_id)
        parent_offset = await self._parent.get_frame_offset()
        if parent_offset is not None:
            offset = offset + parent_offset
        return offset

    async def frame_owner_offset(self, frame_id: str) -> Point:
        """Top-left of the content box of the iframe element hosting ``frame_id``."""
        owner = await self._call(
            "DOM.getFrameOwner",
            self._client.send.DOM.getFrameOwner({"frameId": frame_id}, session_id=self._session_id),
        )
        result = await self._call(
            "DOM.getBoxModel",
            self._client.send.DOM.getBoxModel(
                {"backendNodeId": owner["backendNodeId"]},
                session_id=self._session_id,
            ),
        )
        content = result.get("model", {}).get("content") or []
        if len(content) < 2:
            raise ProtocolError("DOM.getBoxModel", f"no content quad for owner of frame {frame_id}")
        return Point(x=content[0], y=content[1])

    async def wait_for_animation_frame(self, reference: NodeReference) -> None:
        await self._call(
            "Runtime.callFunctionOn",
            self._client.send.Runtime.callFunctionOn(
                {
                    "objectId": reference.object_id,
                    "functionDeclaration": _ANIMATION_FRAME_JS,
                    "awaitPromise": True,
                    "returnByValue": True,
                },
                session_id=self._session_id,
            ),
        )

    async def intersection_ratio(self, reference: NodeReference) -> float:
        result = await self._call(
            "Runtime.callFunctionOn",
            self._client.send.Runtime.callFunctionOn(
                {
                    "objectId": reference.object_id,
                    "functionDeclaration": _INTERSECTION_RATIO_JS,
                    "awaitPromise": True,
                    "returnByValue": True,
                },
                session_id=self._session_id,
            ),
        )
        return float(result.get("result", {}).get("value") or 0)

    async def scroll_into_view(self, reference: NodeReference) -> None:
        """Scroll the node into view, falling back to element.scrollIntoView()."""
        try:
            await self._client.send.DOM.scrollIntoViewIfNeeded(
                {"objectId": reference.object_id},
                session_id=self._session_id,
            )
            return
        except Exception as e:
            logger.debug(f"DOM.scrollIntoViewIfNeeded failed ({e}), using JS scrollIntoView")

        await self._call(
            "Runtime.callFunctionOn",
            self._client.send.Runtime.callFunctionOn(
                {
                    "objectId": reference.object_id,
                    "functionDeclaration": _SCROLL_INTO_VIEW_JS,
                    "returnByValue": True,
                },
                session_id=self._session_id,
            ),
        )

    async def focus(self, reference: NodeReference) -> None:
        """Focus the node with DOM.focus, falling back to element.focus()."""
        try:
            await self._client.send.DOM.focus(
                {"objectId": reference.object_id},
                session_id=self._session_id,
            )
            return
        except Exception as e:
            logger.debug(f"DOM.focus failed ({e}), using JS focus")

        await self._call(
            "Runtime.callFunctionOn",
            self._client.send.Runtime.callFunctionOn(
                {
                    "objectId": reference.object_id,
                    "functionDeclaration": "function() { this.focus(); }",
                },
                session_id=self._session_id,
            ),
        )

    async def release_object(self, reference: NodeReference) -> None:
        await self._call(
            "Runtime.releaseObject",
            self._client.send.Runtime.releaseObject(
                {"objectId": reference.object_id},
                session_id=self._session_id,
            ),
        )

    # ===== Input =====

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
        params: dict[str, Any] = {
            "type": event_type,
            "x": point.x,
            "y": point.y,
            "modifiers": modifiers,
        }
        if event_type == "mouseWheel":
            params.update({"deltaX": delta_x, "deltaY": delta_y, "pointerType": "mouse"})
        else:
            params.update({"button": button, "buttons": buttons})
            if event_type != "mouseMoved":
                params["clickCount"] = click_count

        await self._call(
            "Input.dispatchMouseEvent",
            self._client.send.Input.dispatchMouseEvent(params, session_id=self._input_session),
        )

    async def dispatch_key_event(
        self,
        description: "KeyDescription",
        phase: KeyPhase,
        modifiers: int,
        auto_repeat: bool = False,
    ) -> None:
        params = build_key_event_params(description, phase, modifiers, auto_repeat)
        await self._call(
            "Input.dispatchKeyEvent",
            self._client.send.Input.dispatchKeyEvent(params, session_id=self._input_session),
        )

    async def insert_text(self, text: str) -> None:
        await self._call(
            "Input.insertText",
            self._client.send.Input.insertText({"text": text}, session_id=self._input_session),
        )

    async def dispatch_touch_event(
        self,
        event_type: TouchEventType,
        touch_points: list[dict[str, Any]],
        modifiers: int = 0,
    ) -> None:
        params = {"type": event_type, "touchPoints": touch_points, "modifiers": modifiers}
        await self._call(
            "Input.dispatchTouchEvent",
            self._client.send.Input.dispatchTouchEvent(params, session_id=self._input_session),
        )

    async def intercept_drag(self) -> "asyncio.Future[dict[str, Any]]":
        """
        Arm drag interception for the next drag started on the page.

        Returns:
            Future resolved with the ``DragData`` of the next
            ``Input.dragIntercepted`` event.
        """
        top = self._top()
        if top is not self:
            return await top.intercept_drag()

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._drag_waiters.append(future)
        if not self._intercepting_drags:
            self._client.register.Input.dragIntercepted(self._on_drag_intercepted)
            await self._call(
                "Input.setInterceptDrags",
                self._client.send.Input.setInterceptDrags(
                    {"enabled": True}, session_id=self._session_id
                ),
            )
            self._intercepting_drags = True
        return future

    def _on_drag_intercepted(self, event: dict[str, Any], session_id: str | None = None) -> None:
        if session_id is not None and session_id != self._session_id:
            return
        while self._drag_waiters:
            waiter = self._drag_waiters.pop(0)
            if not waiter.done():
                waiter.set_result(event.get("data", {}))
                return
        logger.debug("Drag intercepted with nobody waiting")

    async def dispatch_drag_event(
        self,
        event_type: DragEventType,
        point: Point,
        data: dict[str, Any],
        modifiers: int = 0,
    ) -> None:
        params = {
            "type": event_type,
            "x": point.x,
            "y": point.y,
            "data": data,
            "modifiers": modifiers,
        }
        await self._call(
            "Input.dispatchDragEvent",
            self._client.send.Input.dispatchDragEvent(params, session_id=self._input_session),
        )


def build_key_event_params(
    description: "KeyDescription",
    phase: KeyPhase,
    modifiers: int,
    auto_repeat: bool = False,
) -> dict[str, Any]:
    """
    Build ``Input.dispatchKeyEvent`` params for one key phase.

    A key-down that carries text is a ``keyDown`` (the browser inserts the
    text); one without text is a ``rawKeyDown``. Absent fields are omitted.
    """
    if phase == "down":
        params = {
            "type": "keyDown" if description.text else "rawKeyDown",
            "modifiers": modifiers,
            "windowsVirtualKeyCode": description.key_code,
            "code": description.code,
            "key": description.key,
            "text": description.text,
            "unmodifiedText": description.text,
            "autoRepeat": auto_repeat,
            "location": description.location,
            "isKeypad": description.is_keypad,
        }
    else:
        params = {
            "type": "keyUp",
            "modifiers": modifiers,
            "key": description.key,
            "windowsVirtualKeyCode": description.key_code,
            "code": description.code,
            "location": description.location,
        }
    return {name: value for name, value in params.items() if value is not None}
