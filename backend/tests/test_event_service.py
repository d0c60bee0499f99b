"""Unit tests for the in-process event stream."""

import asyncio
import json

import pytest

from specforge.services.event_service import DirectEventPublisher, EventEmitter, EventType


class TestDirectEventPublisher:

    @pytest.mark.asyncio
    async def test_events_arrive_in_order_until_close(self):
        publisher = DirectEventPublisher("stream-1")
        emitter = EventEmitter(publisher, "stream-1")

        async def produce():
            await emitter.status("generating", "Generating...")
            await emitter.chunk("### 1. PRD\n")
            await emitter.completed(document="### 1. PRD\n", remaining=2)
            await emitter.close()

        task = asyncio.create_task(produce())
        events = [event async for event in publisher.events()]
        await task

        assert [e.event for e in events] == [EventType.STATUS, EventType.CHUNK, EventType.COMPLETED]
        assert events[1].data == {"text": "### 1. PRD\n"}
        assert all(e.stream_id == "stream-1" for e in events)

    @pytest.mark.asyncio
    async def test_publish_after_close_is_dropped(self):
        publisher = DirectEventPublisher("stream-1")
        emitter = EventEmitter(publisher, "stream-1")

        await emitter.close()
        await emitter.chunk("late")
        await emitter.close()

        assert [event async for event in publisher.events()] == []

    @pytest.mark.asyncio
    async def test_sse_shape(self):
        publisher = DirectEventPublisher("stream-1")
        emitter = EventEmitter(publisher, "stream-1")

        await emitter.error("Something went wrong", kind="ai_backend_error")
        await emitter.close()
        event = [e async for e in publisher.events()][0]

        sse = event.to_sse()
        assert sse["event"] == "error"
        assert json.loads(sse["data"]) == {"error": "Something went wrong", "kind": "ai_backend_error"}
