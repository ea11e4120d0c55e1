"""Unit tests for BoxModel parsing and BoxModelResolver."""

import asyncio

import pytest

from conftest import FakeChannel, box_payload, quad
from tactile.browser.handle import RemoteHandle
from tactile.exceptions import HandleDisposedError, MalformedBoxModelError
from tactile.geometry.box_model import BoxModel, BoxModelResolver
from tactile.geometry.point import Point


# ── BoxModel.from_protocol ───────────────────────────────────────────────────


class TestFromProtocol:
    def test_groups_each_quad(self):
        payload = {
            "content": quad(10, 10, 20, 20),
            "padding": quad(8, 8, 24, 24),
            "border": quad(6, 6, 28, 28),
            "margin": quad(0, 0, 40, 40),
            "width": 28,
            "height": 28,
        }
        model = BoxModel.from_protocol(payload)
        assert model.content[0] == Point(10, 10)
        assert model.content[2] == Point(30, 30)
        assert model.padding[0] == Point(8, 8)
        assert model.margin[2] == Point(40, 40)
        assert (model.width, model.height) == (28, 28)

    def test_bounding_box_uses_border_quad(self):
        payload = box_payload(0, 0, 10, 10)
        payload["border"] = quad(5, 6, 30, 40)
        bbox = BoxModel.from_protocol(payload).bounding_box
        assert (bbox.x, bbox.y, bbox.width, bbox.height) == (5, 6, 30, 40)

    def test_offset_translates_every_quad(self):
        model = BoxModel.from_protocol(box_payload(0, 0, 10, 10), offset=Point(100, 50))
        assert model.content[0] == Point(100, 50)
        assert model.margin[2] == Point(110, 60)

    def test_missing_quad_raises(self):
        payload = box_payload()
        del payload["padding"]
        with pytest.raises(MalformedBoxModelError, match="padding"):
            BoxModel.from_protocol(payload)

    def test_short_quad_raises(self):
        payload = box_payload()
        payload["content"] = [0, 0, 10, 0, 10, 10, 0]
        with pytest.raises(MalformedBoxModelError):
            BoxModel.from_protocol(payload)

    def test_non_mapping_raises(self):
        with pytest.raises(MalformedBoxModelError):
            BoxModel.from_protocol([0, 0, 10, 10])


# ── BoxModelResolver ─────────────────────────────────────────────────────────


class TestResolver:
    @pytest.mark.asyncio
    async def test_resolves_box_model(self, reference):
        channel = FakeChannel([box_payload(0, 0, 10, 10)])
        handle = RemoteHandle(channel, reference)
        model = await BoxModelResolver(channel).resolve(handle)
        assert model is not None
        assert model.bounding_box.width == 10

    @pytest.mark.asyncio
    async def test_not_rendered_returns_none(self, reference):
        channel = FakeChannel([None])
        handle = RemoteHandle(channel, reference)
        assert await BoxModelResolver(channel).resolve(handle) is None

    @pytest.mark.asyncio
    async def test_malformed_payload_raises(self, reference):
        channel = FakeChannel([{"content": [1, 2, 3]}])
        handle = RemoteHandle(channel, reference)
        with pytest.raises(MalformedBoxModelError):
            await BoxModelResolver(channel).resolve(handle)

    @pytest.mark.asyncio
    async def test_disposed_handle_raises_without_query(self, reference):
        channel = FakeChannel()
        handle = RemoteHandle(channel, reference)
        await handle.dispose()
        with pytest.raises(HandleDisposedError):
            await BoxModelResolver(channel).resolve(handle)
        assert channel.box_model_calls == 0

    @pytest.mark.asyncio
    async def test_dispose_racing_query_raises(self, reference):
        channel = FakeChannel()
        handle = RemoteHandle(channel, reference)
        resolver = BoxModelResolver(channel)
        started = asyncio.Event()
        proceed = asyncio.Event()

        async def block():
            started.set()
            await proceed.wait()

        channel.on_box_model = block
        query = asyncio.create_task(resolver.resolve(handle))
        await started.wait()
        await handle.dispose()
        proceed.set()

        with pytest.raises(HandleDisposedError):
            await query

    @pytest.mark.asyncio
    async def test_frame_offset_translates_quads(self, reference):
        channel = FakeChannel([box_payload(0, 0, 10, 10)])
        channel.frame_offset = Point(100, 50)
        model = await BoxModelResolver(channel).resolve(RemoteHandle(channel, reference))
        assert model.content[0] == Point(100, 50)
        assert model.border[1] == Point(110, 50)
        assert model.bounding_box.x == 100

    @pytest.mark.asyncio
    async def test_no_frame_offset_for_page(self, reference):
        channel = FakeChannel([box_payload(5, 5, 10, 10)])
        model = await BoxModelResolver(channel).resolve(RemoteHandle(channel, reference))
        assert model.content[0] == Point(5, 5)


# ── RemoteHandle.dispose ─────────────────────────────────────────────────────


class TestDispose:
    @pytest.mark.asyncio
    async def test_dispose_is_idempotent(self, reference):
        channel = FakeChannel()
        handle = RemoteHandle(channel, reference)
        await handle.dispose()
        await handle.dispose()
        assert handle.disposed
        assert channel.released == [reference]

    @pytest.mark.asyncio
    async def test_concurrent_dispose_releases_once(self, reference):
        channel = FakeChannel()
        handle = RemoteHandle(channel, reference)
        await asyncio.gather(handle.dispose(), handle.dispose())
        assert channel.released == [reference]

    def test_repr_mentions_node_and_state(self, reference):
        handle = RemoteHandle(FakeChannel(), reference)
        assert "node=42" in repr(handle)
        handle.invalidate()
        assert "disposed" in repr(handle)
