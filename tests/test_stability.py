"""Unit tests for the StabilityGate polling loop."""

import asyncio

import pytest

from conftest import FakeChannel, box_payload, quad
from tactile.browser.cancellation import CancellationToken
from tactile.browser.handle import RemoteHandle
from tactile.browser.stability import StabilityGate
from tactile.exceptions import (
    ElementHandleCancelledError,
    ElementNotRenderedError,
    HandleDisposedError,
    WaitForStabilityTimeoutError,
)
from tactile.geometry.box_model import BoxModel, BoxModelResolver
from tactile.geometry.point import Viewport


def _gate(channel: FakeChannel) -> StabilityGate:
    return StabilityGate(BoxModelResolver(channel), channel)


def _moving(count: int = 1000) -> list[dict]:
    return [box_payload(x=i, y=0) for i in range(count)]


# ── is_stable / is_visible ───────────────────────────────────────────────────


class TestPredicates:
    def test_identical_samples_are_stable(self):
        gate = _gate(FakeChannel())
        model = BoxModel.from_protocol(box_payload())
        assert gate.is_stable(model, BoxModel.from_protocol(box_payload()))

    def test_moved_sample_is_unstable(self):
        gate = _gate(FakeChannel())
        before = BoxModel.from_protocol(box_payload(x=0))
        after = BoxModel.from_protocol(box_payload(x=1))
        assert not gate.is_stable(before, after)

    def test_visible_when_center_in_viewport(self):
        model = BoxModel.from_protocol(box_payload(10, 10, 20, 20))
        assert StabilityGate.is_visible(model, Viewport(100, 100))

    def test_not_visible_when_center_outside_viewport(self):
        model = BoxModel.from_protocol(box_payload(95, 10, 20, 20))
        assert not StabilityGate.is_visible(model, Viewport(100, 100))

    def test_not_visible_with_zero_area(self):
        model = BoxModel.from_protocol(box_payload(10, 10, 0, 20))
        assert not StabilityGate.is_visible(model, Viewport(100, 100))

    def test_visibility_uses_border_box_center(self):
        # Asymmetric padding pushes the content centroid outside the viewport
        payload = box_payload(0, 0, 100, 20)
        payload["content"] = quad(70, 0, 20, 20)
        payload["padding"] = quad(0, 0, 100, 20)
        model = BoxModel.from_protocol(payload)
        assert StabilityGate.is_visible(model, Viewport(60, 100))


# ── wait ─────────────────────────────────────────────────────────────────────


class TestWait:
    @pytest.mark.asyncio
    async def test_stable_after_two_equal_samples(self, reference):
        channel = FakeChannel([box_payload()])
        handle = RemoteHandle(channel, reference)
        model = await _gate(channel).wait(handle, timeout=1.0)
        assert model.bounding_box.width == 10
        assert channel.box_model_calls == 2
        assert channel.frame_waits == 1

    @pytest.mark.asyncio
    async def test_moving_then_settled(self, reference):
        payloads = [box_payload(x=0), box_payload(x=5), box_payload(x=9)]
        channel = FakeChannel(payloads)
        handle = RemoteHandle(channel, reference)
        model = await _gate(channel).wait(handle, timeout=1.0)
        assert model.content[0].x == 9
        assert channel.box_model_calls == 4

    @pytest.mark.asyncio
    async def test_initial_sample_counts_as_previous(self, reference):
        channel = FakeChannel([box_payload()])
        handle = RemoteHandle(channel, reference)
        initial = BoxModel.from_protocol(box_payload())
        await _gate(channel).wait(handle, timeout=1.0, initial=initial)
        assert channel.box_model_calls == 1

    @pytest.mark.asyncio
    async def test_zero_timeout_on_moving_element_fails_fast(self, reference):
        channel = FakeChannel(_moving())
        handle = RemoteHandle(channel, reference)
        with pytest.raises(WaitForStabilityTimeoutError) as exc_info:
            await asyncio.wait_for(_gate(channel).wait(handle, timeout=0), timeout=1.0)
        assert exc_info.value.handle is handle

    @pytest.mark.asyncio
    async def test_never_settling_element_times_out(self, reference):
        channel = FakeChannel(_moving(100000))
        handle = RemoteHandle(channel, reference)
        with pytest.raises(WaitForStabilityTimeoutError) as exc_info:
            await _gate(channel).wait(handle, timeout=0.05)
        assert exc_info.value.elapsed > 0
        assert exc_info.value.last_sample is not None

    @pytest.mark.asyncio
    async def test_stable_offscreen_element_keeps_polling(self, reference):
        channel = FakeChannel([box_payload(x=2000)])
        handle = RemoteHandle(channel, reference)
        with pytest.raises(WaitForStabilityTimeoutError):
            await _gate(channel).wait(handle, timeout=0.05)

    @pytest.mark.asyncio
    async def test_not_rendered_mid_poll_fails_immediately(self, reference):
        channel = FakeChannel([box_payload(x=0), box_payload(x=1), None])
        handle = RemoteHandle(channel, reference)
        with pytest.raises(ElementNotRenderedError):
            await _gate(channel).wait(handle, timeout=5.0)
        assert channel.box_model_calls == 3

    @pytest.mark.asyncio
    async def test_cancelled_token_raises_cancelled(self, reference):
        channel = FakeChannel(_moving())
        handle = RemoteHandle(channel, reference)
        token = CancellationToken()
        token.cancel("frame navigated")
        with pytest.raises(ElementHandleCancelledError, match="frame navigated"):
            await _gate(channel).wait(handle, timeout=5.0, cancellation=token)

    @pytest.mark.asyncio
    async def test_cancellation_mid_poll(self, reference):
        channel = FakeChannel(_moving(100000))
        handle = RemoteHandle(channel, reference)
        token = CancellationToken()

        async def cancel_on_third_sample():
            if channel.box_model_calls == 3:
                token.cancel("context destroyed")

        channel.on_box_model = cancel_on_third_sample
        with pytest.raises(ElementHandleCancelledError):
            await _gate(channel).wait(handle, timeout=5.0, cancellation=token)

    @pytest.mark.asyncio
    async def test_cancellation_wins_over_elapsed_timeout(self, reference):
        channel = FakeChannel(_moving(100000))
        handle = RemoteHandle(channel, reference)
        token = CancellationToken()

        async def cancel_and_stall():
            if channel.box_model_calls == 2:
                token.cancel("context destroyed")
                await asyncio.sleep(0.05)

        channel.on_box_model = cancel_and_stall
        with pytest.raises(ElementHandleCancelledError):
            await _gate(channel).wait(handle, timeout=0.01, cancellation=token)

    @pytest.mark.asyncio
    async def test_disposed_mid_poll_raises(self, reference):
        channel = FakeChannel(_moving())
        handle = RemoteHandle(channel, reference)

        async def dispose_on_second_sample():
            if channel.box_model_calls == 2:
                handle.invalidate()

        channel.on_box_model = dispose_on_second_sample
        with pytest.raises(HandleDisposedError):
            await _gate(channel).wait(handle, timeout=5.0)
