"""
Event Service - Streaming Generation Updates via SSE
====================================================

A full specification takes a minute or more to generate. The generation
runs as a task next to the HTTP response, and every fragment the model
produces is pushed through an in-process queue to the SSE endpoint so the
browser can render the document as it grows.

    GenerationService ──▶ EventEmitter ──▶ DirectEventPublisher ──▶ SSE
                                            (asyncio.Queue)

Event Types:
------------
- STATUS: phase updates ("Checking your plan...", "Generating...")
- CHUNK: one text fragment of the document
- COMPLETED: final document, parsed sections and remaining quota
- ERROR: user-facing error (already translated, never a raw exception)

If the client disconnects, the endpoint stops reading; events published
afterwards are simply dropped when the publisher is closed.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, AsyncGenerator, Protocol


class EventType(str, Enum):
    STATUS = "status"
    CHUNK = "chunk"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class GenerationEvent:
    event: EventType
    data: dict[str, Any]
    stream_id: str
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_sse(self) -> dict[str, str]:
        """Shape expected by sse_starlette's EventSourceResponse."""
        return {"event": self.event.value, "data": json.dumps(self.data, default=str)}


class EventPublisher(Protocol):

    async def publish(self, event: GenerationEvent) -> None:
        ...

    async def close(self) -> None:
        ...


class DirectEventPublisher:
    """
    In-process publisher backed by an asyncio Queue.

    Usage:
        publisher = DirectEventPublisher(stream_id)
        await publisher.publish(GenerationEvent(...))
        async for event in publisher.events():
            yield event.to_sse()
        await publisher.close()
    """

    _END = "_stream_end"

    def __init__(self, stream_id: str) -> None:
        self.stream_id = stream_id
        self._events: asyncio.Queue[GenerationEvent] = asyncio.Queue()
        self._closed = False

    async def publish(self, event: GenerationEvent) -> None:
        if not self._closed:
            await self._events.put(event)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._events.put(
            GenerationEvent(
                event=EventType.COMPLETED,
                data={self._END: True},
                stream_id=self.stream_id,
            )
        )

    async def events(self) -> AsyncGenerator[GenerationEvent, None]:
        while True:
            event = await self._events.get()
            if event.data.get(self._END):
                break
            yield event


class EventEmitter:
    """
    Typed helpers over a publisher.

        await emitter.status("generating", "Writing your specification...")
        await emitter.chunk(text)
        await emitter.completed(document=doc, sections=[...], remaining=2)
    """

    def __init__(self, publisher: EventPublisher, stream_id: str) -> None:
        self.stream_id = stream_id
        self.publisher = publisher

    async def emit(self, event: EventType, **data: Any) -> None:
        await self.publisher.publish(
            GenerationEvent(event=event, data=data, stream_id=self.stream_id)
        )

    async def status(self, status: str, message: str = "") -> None:
        await self.emit(EventType.STATUS, status=status, message=message)

    async def chunk(self, text: str) -> None:
        await self.emit(EventType.CHUNK, text=text)

    async def completed(self, **data: Any) -> None:
        await self.emit(EventType.COMPLETED, **data)

    async def error(self, error: str, **details: Any) -> None:
        await self.emit(EventType.ERROR, error=error, **details)

    async def close(self) -> None:
        await self.publisher.close()
