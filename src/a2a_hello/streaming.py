"""
Server-Sent Events delivery for ``message/stream``.

``StreamRelay`` forwards each engine event to an ``SSETransport`` as soon as it
is produced, keeps a folded copy of the task, and stores that task once the
sequence ends. The transport is a bounded hand-off between the relay and the
HTTP response body, so a slow client slows the engine down instead of
causing events to pile up or be dropped.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import aclosing
from typing import AsyncIterator, Optional

from .a2a.models import Event, Message, Task, serialize_a2a
from .executor import AgentExecutor, TaskFolder
from .task_store import InMemoryTaskStore

logger = logging.getLogger(__name__)


def format_sse(event: Event) -> bytes:
    """Serialize an event as a server-sent event record."""
    return f"data: {json.dumps(serialize_a2a(event))}\n\n".encode("utf-8")


class TransportClosedError(RuntimeError):
    """Raised when writing to a transport that was already closed."""


class SSETransport:
    """One-slot pipe from the relay to a streaming HTTP response."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Optional[bytes]] = asyncio.Queue(maxsize=1)
        self._closed = False
        self._detached = False
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def detached(self) -> bool:
        """True once the reading side has gone away."""
        return self._detached

    async def write(self, event: Event) -> None:
        if self._closed:
            raise TransportClosedError("Cannot write to a closed SSE transport")
        if self._detached:
            # Client disconnected; the engine still runs to completion.
            logger.debug("Dropping SSE frame for detached client", extra={"event_kind": event.kind})
            return
        await self._queue.put(format_sse(event))

    async def close(self) -> None:
        self.close_count += 1
        if self._closed:
            return
        self._closed = True
        if not self._detached:
            await self._queue.put(None)

    async def frames(self) -> AsyncIterator[bytes]:
        """Yield encoded frames until the transport is closed."""
        try:
            while True:
                frame = await self._queue.get()
                if frame is None:
                    break
                yield frame
        finally:
            self._detached = True
            # Unblock a writer waiting on the full slot.
            while not self._queue.empty():
                self._queue.get_nowait()


class StreamRelay:
    """Relays engine events to a transport and persists the resulting task."""

    def __init__(self, executor: AgentExecutor, task_store: InMemoryTaskStore) -> None:
        self.executor = executor
        self.task_store = task_store

    async def run(
        self,
        task_id: str,
        context_id: Optional[str],
        message: Message,
        transport: SSETransport,
    ) -> Optional[Task]:
        """Stream one task execution, returning the stored task (if any)."""
        folder = TaskFolder()
        logger.info("Starting SSE stream", extra={"task_id": task_id, "context_id": context_id})

        try:
            try:
                async with aclosing(self.executor.execute(task_id, context_id, message)) as events:
                    async for event in events:
                        await transport.write(event)
                        folder.apply(event)
            except Exception as exc:
                logger.exception("Error in SSE stream", extra={"task_id": task_id})
                failure = folder.fail(str(exc) or type(exc).__name__)
                if failure is not None and not transport.closed:
                    await transport.write(failure)
        finally:
            if folder.task is not None:
                await self.task_store.put(folder.task)
            await transport.close()
            logger.info(
                "SSE stream closed",
                extra={
                    "task_id": task_id,
                    "state": folder.task.status.state.value if folder.task else None,
                    "client_detached": transport.detached,
                },
            )

        return folder.task
