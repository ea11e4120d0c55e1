"""Shared fixtures: in-memory RemoteChannel, recording CDP client, box model payloads."""

import asyncio

import pytest

from tactile.browser.protocol import NodeReference
from tactile.context import InteractionContext
from tactile.geometry.point import Viewport


def quad(x: float, y: float, width: float, height: float) -> list[float]:
    """Flat CDP quad for an axis-aligned rectangle."""
    return [x, y, x + width, y, x + width, y + height, x, y + height]


def box_payload(x: float = 0, y: float = 0, width: float = 10, height: float = 10) -> dict:
    """DOM.getBoxModel ``model`` object with identical content/padding/border/margin."""
    rect = quad(x, y, width, height)
    return {
        "content": list(rect),
        "padding": list(rect),
        "border": list(rect),
        "margin": list(rect),
        "width": width,
        "height": height,
    }


class FakeChannel:
    """
    RemoteChannel double that replays scripted box models and records events.

    ``box_models`` is consumed one entry per query; the last entry repeats.
    """

    def __init__(self, box_models=None, viewport: Viewport | None = None):
        self.box_models = list(box_models if box_models is not None else [box_payload()])
        self.viewport = viewport or Viewport(width=800, height=600)
        self.box_model_calls = 0
        self.frame_waits = 0
        self.scrolls = 0
        self.focused: list[NodeReference] = []
        self.released: list[NodeReference] = []
        self.mouse_events: list[dict] = []
        self.key_events: list[dict] = []
        self.inserted: list[str] = []
        self.touch_events: list[dict] = []
        self.drag_events: list[dict] = []
        self.drag_data: dict | None = {"items": [], "dragOperationsMask": 1}
        self.frame_offset = None
        self.intersection = 1.0
        self.on_box_model = None

    async def get_box_model(self, reference):
        self.box_model_calls += 1
        if self.on_box_model is not None:
            await self.on_box_model()
        index = min(self.box_model_calls - 1, len(self.box_models) - 1)
        return self.box_models[index]

    async def get_viewport(self):
        return self.viewport

    async def get_frame_offset(self):
        return self.frame_offset

    async def intersection_ratio(self, reference):
        return self.intersection

    async def wait_for_animation_frame(self, reference):
        self.frame_waits += 1

    async def scroll_into_view(self, reference):
        self.scrolls += 1

    async def focus(self, reference):
        self.focused.append(reference)

    async def release_object(self, reference):
        self.released.append(reference)

    async def dispatch_mouse_event(
        self,
        event_type,
        point,
        *,
        button="none",
        buttons=0,
        click_count=0,
        modifiers=0,
        delta_x=0,
        delta_y=0,
    ):
        self.mouse_events.append(
            {
                "type": event_type,
                "x": point.x,
                "y": point.y,
                "button": button,
                "buttons": buttons,
                "click_count": click_count,
                "modifiers": modifiers,
                "delta_x": delta_x,
                "delta_y": delta_y,
            }
        )

    async def dispatch_key_event(self, description, phase, modifiers, auto_repeat=False):
        self.key_events.append(
            {
                "phase": phase,
                "key": description.key,
                "code": description.code,
                "text": description.text,
                "key_code": description.key_code,
                "modifiers": modifiers,
                "auto_repeat": auto_repeat,
            }
        )

    async def insert_text(self, text):
        self.inserted.append(text)

    async def dispatch_touch_event(self, event_type, touch_points, modifiers=0):
        self.touch_events.append(
            {"type": event_type, "points": touch_points, "modifiers": modifiers}
        )

    async def intercept_drag(self):
        """Future already resolved with ``drag_data``; None leaves it pending."""
        future = asyncio.get_running_loop().create_future()
        if self.drag_data is not None:
            future.set_result(self.drag_data)
        return future

    async def dispatch_drag_event(self, event_type, point, data, modifiers=0):
        self.drag_events.append(
            {"type": event_type, "x": point.x, "y": point.y, "data": data, "modifiers": modifiers}
        )


# ── Recording CDP client ─────────────────────────────────────────────────────


class _Domain:
    def __init__(self, client, name):
        self._client = client
        self._name = name

    def __getattr__(self, command):
        method = f"{self._name}.{command}"

        async def send(params=None, session_id=None):
            self._client.calls.append((method, params, session_id))
            response = self._client.responses.get(method, {})
            if isinstance(response, Exception):
                raise response
            return response

        return send


class _Send:
    def __init__(self, client):
        self._client = client

    def __getattr__(self, domain):
        return _Domain(self._client, domain)


class _Events:
    def __init__(self, handlers, domain):
        self._handlers = handlers
        self._domain = domain

    def __getattr__(self, event):
        def register(handler):
            self._handlers[f"{self._domain}.{event}"] = handler

        return register


class _Register:
    def __init__(self, handlers):
        self._handlers = handlers

    def __getattr__(self, domain):
        return _Events(self._handlers, domain)


class RecordingClient:
    """
    Stands in for cdp_use.CDPClient.

    ``client.send.Domain.command(params, session_id=)`` is recorded in ``calls``
    and answered from ``responses``; ``client.register.Domain.event(handler)``
    stores the handler in ``handlers`` (one per event, like cdp-use).
    """

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls: list[tuple[str, dict | None, str | None]] = []
        self.handlers: dict = {}
        self.stopped = False
        self.send = _Send(self)
        self.register = _Register(self.handlers)

    def methods(self) -> list[str]:
        return [method for method, _, _ in self.calls]

    async def stop(self):
        self.stopped = True


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def reference():
    return NodeReference(object_id="obj-1", backend_node_id=42, execution_context_id=1)


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def context(channel):
    return InteractionContext(channel)


@pytest.fixture
def element(context, reference):
    return context.element(reference)
