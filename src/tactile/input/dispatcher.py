"""
Input Dispatcher - resolve, stabilize, aim and dispatch.

Every pointer interaction walks the same states:

    ResolvingBox -> WaitingStable -> ComputingPoint -> Dispatching -> Done

and can move to Failed from any of them. Only ElementNotRenderedError during
ResolvingBox/WaitingStable is retried, and only when the caller asked to wait
for the element to be attached.
"""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from tactile.browser.cancellation import CancellationToken, race_cancellation
from tactile.config import InteractionConfig, MouseButton
from tactile.events.types import InteractionCompleted, InteractionStateChanged
from tactile.exceptions import (
    ElementNotRenderedError,
    InputError,
    InteractionTimeoutError,
    ProtocolError,
)
from tactile.geometry.interaction_point import compute_interaction_point
from tactile.geometry.offset import Offset
from tactile.logging.config import TactileLogger

if TYPE_CHECKING:
    from tactile.browser.handle import RemoteHandle
    from tactile.browser.protocol import RemoteChannel
    from tactile.browser.stability import StabilityGate
    from tactile.events.bus import EventBus
    from tactile.geometry.box_model import BoxModel, BoxModelResolver
    from tactile.geometry.point import Point, Viewport
    from tactile.input.keyboard import Keyboard
    from tactile.input.mouse import Mouse
    from tactile.input.touchscreen import TouchScreen

logger = logging.getLogger(__name__)
interaction_log = TactileLogger(__name__)

T = TypeVar("T")


class InteractionState(str, Enum):
    RESOLVING_BOX = "ResolvingBox"
    WAITING_STABLE = "WaitingStable"
    COMPUTING_POINT = "ComputingPoint"
    DISPATCHING = "Dispatching"
    DONE = "Done"
    FAILED = "Failed"


@dataclass
class Interaction:
    """Bookkeeping for one in-flight interaction."""

    action: str
    handle: "RemoteHandle"
    started: float
    deadline: float
    cancellation: CancellationToken | None = None
    state: InteractionState = InteractionState.RESOLVING_BOX
    attempt: int = 1
    failure: str | None = None
    history: list[InteractionState] = field(default_factory=list)

    # Input state held before the interaction began
    held_keys: frozenset[str] = frozenset()
    held_buttons: int = 0
    held_touches: frozenset[int] = frozenset()

    def remaining(self) -> float:
        return self.deadline - asyncio.get_running_loop().time()

    def elapsed(self) -> float:
        return asyncio.get_running_loop().time() - self.started


class InputDispatcher:
    """
    Orchestrates geometry resolution and input dispatch for element handles.

    One overall timeout bounds scrolling, box resolution, the stability wait and
    the dispatched events of an interaction.
    """

    def __init__(
        self,
        channel: "RemoteChannel",
        resolver: "BoxModelResolver",
        gate: "StabilityGate",
        mouse: "Mouse",
        keyboard: "Keyboard",
        config: InteractionConfig | None = None,
        event_bus: "EventBus | None" = None,
        cancellation: CancellationToken | None = None,
        touchscreen: "TouchScreen | None" = None,
    ):
        self._channel = channel
        self._resolver = resolver
        self._gate = gate
        self._mouse = mouse
        self._keyboard = keyboard
        self._touchscreen = touchscreen
        self._config = config or InteractionConfig()
        self._bus = event_bus
        self._cancellation = cancellation
        self.last_interaction: Interaction | None = None

    @property
    def cancellation(self) -> CancellationToken | None:
        return self._cancellation

    @cancellation.setter
    def cancellation(self, token: CancellationToken | None) -> None:
        self._cancellation = token

    # ===== Public operations =====

    async def wait_for_stable(
        self,
        handle: "RemoteHandle",
        timeout: float | None = None,
        wait_for_attached: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> "BoxModel":
        interaction = self._begin("wait_for_stable", handle, timeout, cancellation)
        try:
            model, _ = await self._stable_box(interaction, wait_for_attached)
            await self._transition(interaction, InteractionState.DONE)
            return model
        except Exception as e:
            await self._fail(interaction, e)
            raise

    async def clickable_point(
        self,
        handle: "RemoteHandle",
        offset: Any = None,
        timeout: float | None = None,
        wait_for_attached: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> "Point":
        offset_value = Offset.from_source(offset)
        interaction = self._begin("clickable_point", handle, timeout, cancellation)
        try:
            point = await self._aim(interaction, offset_value, wait_for_attached)
            await self._transition(interaction, InteractionState.DONE)
            return point
        except Exception as e:
            await self._fail(interaction, e)
            raise

    async def click(
        self,
        handle: "RemoteHandle",
        offset: Any = None,
        button: MouseButton = "left",
        click_count: int = 1,
        delay: float | None = None,
        timeout: float | None = None,
        wait_for_attached: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> "Point":
        """
        Click an element once it is stable and visible.

        Args:
            handle: Element to click.
            offset: Offset from the element's top-left corner (Offset or {x, y}).
            button: Mouse button.
            click_count: Number of clicks.
            delay: Seconds between press and release (defaults to config.click_delay).
            timeout: Overall time budget in seconds (defaults to config.action_timeout).
            wait_for_attached: Retry while the element is not rendered yet.
            cancellation: Token overriding the dispatcher's default.

        Returns:
            The point that was clicked.
        """
        offset_value = Offset.from_source(offset)
        interaction = self._begin("click", handle, timeout, cancellation)
        try:
            point = await self._aim(interaction, offset_value, wait_for_attached)

            await self._transition(interaction, InteractionState.DISPATCHING)
            await self._bounded(
                interaction,
                self._mouse.click(
                    point.x,
                    point.y,
                    button=button,
                    count=click_count,
                    delay=delay if delay is not None else self._config.click_delay,
                ),
            )

            await self._complete(interaction, point)
            return point
        except Exception as e:
            await self._fail(interaction, e)
            raise

    async def hover(
        self,
        handle: "RemoteHandle",
        offset: Any = None,
        timeout: float | None = None,
        wait_for_attached: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> "Point":
        """Move the pointer over an element once it is stable and visible."""
        offset_value = Offset.from_source(offset)
        interaction = self._begin("hover", handle, timeout, cancellation)
        try:
            point = await self._aim(interaction, offset_value, wait_for_attached)

            await self._transition(interaction, InteractionState.DISPATCHING)
            await self._bounded(interaction, self._mouse.move(point.x, point.y))

            await self._complete(interaction, point)
            return point
        except Exception as e:
            await self._fail(interaction, e)
            raise

    async def tap(
        self,
        handle: "RemoteHandle",
        offset: Any = None,
        timeout: float | None = None,
        wait_for_attached: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> "Point":
        """
        Tap an element on the touchscreen once it is stable and visible.

        Raises:
            InputError: If the dispatcher has no touchscreen.
        """
        if self._touchscreen is None:
            raise InputError("Dispatcher has no touchscreen")

        offset_value = Offset.from_source(offset)
        interaction = self._begin("tap", handle, timeout, cancellation)
        try:
            point = await self._aim(interaction, offset_value, wait_for_attached)

            await self._transition(interaction, InteractionState.DISPATCHING)
            await self._bounded(interaction, self._touchscreen.tap(point.x, point.y))

            await self._complete(interaction, point)
            return point
        except Exception as e:
            await self._fail(interaction, e)
            raise

    async def drag_and_drop(
        self,
        source: "RemoteHandle",
        target: "RemoteHandle",
        delay: float | None = None,
        timeout: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> "Point":
        """
        Drag ``source`` and drop it on ``target``.

        Both elements are waited on and aimed at within one time budget. The
        page must start a drag when ``source`` is pressed and moved, or the
        interaction times out.

        Args:
            source: Element to drag.
            target: Element to drop on.
            delay: Seconds to hover over the target before dropping.
            timeout: Overall time budget in seconds (defaults to config.action_timeout).
            cancellation: Token overriding the dispatcher's default.

        Returns:
            The point the element was dropped on.
        """
        interaction = self._begin("drag_and_drop", source, timeout, cancellation)
        try:
            start = await self._aim(interaction, None, False)
            target.ensure_alive()
            end = await self._aim(interaction, None, False, handle=target)

            await self._transition(interaction, InteractionState.DISPATCHING)
            await self._bounded(interaction, self._mouse.drag_and_drop(start, end, delay=delay))

            await self._complete(interaction, end)
            return end
        except Exception as e:
            await self._fail(interaction, e)
            raise

    async def focus(
        self,
        handle: "RemoteHandle",
        timeout: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Focus an element within the interaction budget."""
        interaction = self._begin("focus", handle, timeout, cancellation)
        try:
            await self._focus(interaction)
            await self._transition(interaction, InteractionState.DONE)
        except Exception as e:
            await self._fail(interaction, e)
            raise

    async def press(
        self,
        handle: "RemoteHandle",
        key: str,
        delay: float | None = None,
        text: str | None = None,
        timeout: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Focus an element and press a key."""
        # Unknown keys fail before anything is sent
        self._keyboard.description_for(key)

        interaction = self._begin("press", handle, timeout, cancellation)
        try:
            await self._focus(interaction)
            await self._bounded(interaction, self._keyboard.press(key, delay=delay, text=text))
            await self._transition(interaction, InteractionState.DONE)
        except Exception as e:
            await self._fail(interaction, e)
            raise

    async def type_text(
        self,
        handle: "RemoteHandle",
        text: str,
        delay: float | None = None,
        timeout: float | None = None,
        cancellation: CancellationToken | None = None,
    ) -> None:
        """Focus an element and type text."""
        interaction = self._begin("type_text", handle, timeout, cancellation)
        try:
            await self._focus(interaction)
            await self._bounded(interaction, self._keyboard.type_text(text, delay=delay))
            await self._transition(interaction, InteractionState.DONE)
        except Exception as e:
            await self._fail(interaction, e)
            raise

    # ===== State machine =====

    def _begin(
        self,
        action: str,
        handle: "RemoteHandle",
        timeout: float | None,
        cancellation: CancellationToken | None,
    ) -> Interaction:
        handle.ensure_alive()
        budget = self._config.action_timeout if timeout is None else timeout
        now = asyncio.get_running_loop().time()
        interaction = Interaction(
            action=action,
            handle=handle,
            started=now,
            deadline=now + budget,
            cancellation=cancellation or self._cancellation,
            held_keys=self._keyboard.pressed_keys,
            held_buttons=self._mouse.buttons,
            held_touches=self._held_touches(),
        )
        self.last_interaction = interaction
        return interaction

    async def _transition(
        self,
        interaction: Interaction,
        state: InteractionState,
        error: str | None = None,
    ) -> None:
        interaction.state = state
        interaction.history.append(state)
        logger.debug(
            f"{interaction.action} {interaction.handle!r}: {state.value}"
            + (f" (attempt {interaction.attempt})" if interaction.attempt > 1 else ""),
            extra={"action": interaction.action, "state": state.value},
        )
        if self._bus is not None:
            await self._bus.emit(
                InteractionStateChanged(
                    action=interaction.action,
                    handle=repr(interaction.handle),
                    state=state.value,
                    attempt=interaction.attempt,
                    error=error,
                )
            )

    async def _fail(self, interaction: Interaction, error: Exception) -> None:
        kind = type(error).__name__
        interaction.failure = kind
        logger.debug(
            f"{interaction.action} failed in {interaction.state.value} "
            f"after {interaction.elapsed():.3f}s: {kind}: {error}"
        )
        if interaction.state == InteractionState.DISPATCHING:
            await self._release_inputs(interaction)
        await self._transition(interaction, InteractionState.FAILED, error=kind)

    async def _release_inputs(self, interaction: Interaction) -> None:
        """Release buttons, keys and touches an interrupted dispatch left pressed."""
        try:
            await self._mouse.release_buttons(keep=interaction.held_buttons)
            await self._keyboard.release_all(keep=interaction.held_keys)
            if self._touchscreen is not None:
                await self._touchscreen.end_all(keep=interaction.held_touches)
        except ProtocolError as e:
            interaction_log.warning(f"Could not release input after {interaction.action}: {e}")

    def _held_touches(self) -> frozenset[int]:
        if self._touchscreen is None:
            return frozenset()
        return frozenset(touch.point.id for touch in self._touchscreen.active_touches)

    async def _complete(self, interaction: Interaction, point: "Point") -> None:
        await self._transition(interaction, InteractionState.DONE)
        interaction_log.interaction(
            interaction.action, target=repr(interaction.handle), state=InteractionState.DONE.value
        )
        if self._bus is not None:
            await self._bus.emit(
                InteractionCompleted(
                    action=interaction.action,
                    handle=repr(interaction.handle),
                    x=point.x,
                    y=point.y,
                    elapsed=interaction.elapsed(),
                )
            )

    async def _bounded(self, interaction: Interaction, awaitable: Awaitable[T]) -> T:
        """Await within the interaction's remaining budget, observing cancellation."""
        finished, result = await race_cancellation(
            awaitable,
            interaction.cancellation,
            interaction.remaining(),
            interaction.handle,
        )
        if not finished:
            raise InteractionTimeoutError(
                f"{interaction.action} timed out in {interaction.state.value}",
                interaction.handle,
                interaction.elapsed(),
            )
        return result

    async def _focus(self, interaction: Interaction) -> None:
        await self._transition(interaction, InteractionState.DISPATCHING)
        interaction.handle.ensure_alive()
        await self._bounded(interaction, self._channel.focus(interaction.handle.reference))

    async def _stable_box(
        self,
        interaction: Interaction,
        wait_for_attached: bool,
        handle: "RemoteHandle | None" = None,
    ) -> tuple["BoxModel", "Viewport"]:
        handle = handle or interaction.handle
        attempts = self._config.attach_retries + 1 if wait_for_attached else 1
        viewport = None

        while True:
            try:
                await self._transition(interaction, InteractionState.RESOLVING_BOX)
                handle.ensure_alive()
                await self._bounded(interaction, self._channel.scroll_into_view(handle.reference))
                if viewport is None:
                    viewport = await self._bounded(interaction, self._channel.get_viewport())

                model = await self._bounded(interaction, self._resolver.resolve(handle))
                if model is None:
                    raise ElementNotRenderedError(handle, interaction.elapsed())

                await self._transition(interaction, InteractionState.WAITING_STABLE)
                model = await self._gate.wait(
                    handle,
                    max(interaction.remaining(), 0),
                    initial=model,
                    viewport=viewport,
                    cancellation=interaction.cancellation,
                )
                return model, viewport
            except ElementNotRenderedError:
                if interaction.attempt >= attempts:
                    raise
                logger.debug(
                    f"{handle!r} not rendered, retrying ({interaction.attempt}/{attempts - 1})"
                )
                await self._bounded(interaction, asyncio.sleep(self._config.attach_retry_delay))
                interaction.attempt += 1

    async def _aim(
        self,
        interaction: Interaction,
        offset: Offset | None,
        wait_for_attached: bool,
        handle: "RemoteHandle | None" = None,
    ) -> "Point":
        handle = handle or interaction.handle
        model, viewport = await self._stable_box(interaction, wait_for_attached, handle)

        await self._transition(interaction, InteractionState.COMPUTING_POINT)
        point = compute_interaction_point(
            model,
            viewport,
            offset,
            min_clickable_area=self._config.min_clickable_area,
        )
        interaction_log.geometry(repr(handle), point.x, point.y, details=interaction.action)
        return point
