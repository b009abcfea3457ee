"""
Agent Executor

Drives a single task from submission to a terminal state and publishes every
lifecycle transition as an ordered sequence of A2A events. The sequence is the
source of truth for both delivery modes: ``execute_send`` folds it into one
Task, while the streaming relay forwards each event as it is produced.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Optional, Tuple

from .a2a.models import (
    Event,
    Message,
    Task,
    TaskArtifactUpdateEvent,
    TaskState,
    TaskStatus,
    TaskStatusUpdateEvent,
    TextPart,
    create_message_id,
    current_timestamp,
    next_timestamp,
)
from .agent import HelloWorldResponder, Responder
from .errors import ResponderError

logger = logging.getLogger(__name__)


class EventChannel:
    """Single-producer, single-consumer hand-off for engine events.

    ``send`` only returns once the consumer has released the event, so the
    producer never runs ahead of a slow consumer and nothing is buffered.
    The channel ends exactly once, through ``close``, ``fail`` or ``abort``.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Tuple[str, Any]] = asyncio.Queue(maxsize=1)
        self._sealed = False
        self._aborted: Optional[Exception] = None
        self.finished = False

    async def send(self, event: Event) -> None:
        await self._queue.put(("event", event))
        await self._queue.join()

    async def fail(self, error: Exception) -> None:
        self._sealed = True
        await self._queue.put(("error", error))

    async def close(self) -> None:
        self._sealed = True
        await self._queue.put(("done", None))

    def abort(self, error: Exception) -> None:
        """End the channel without waiting, unless the producer already ended it.

        Used when the producer task stops without reaching ``close`` or
        ``fail``, e.g. because it was cancelled.
        """
        if self._sealed:
            return
        self._sealed = True
        self._aborted = error
        if not self._queue.full():
            self._queue.put_nowait(("error", error))

    async def receive(self) -> Optional[Event]:
        """Wait for the next event, or None once the producer has closed.

        Every event returned must be handed back with ``release``. A producer
        failure is re-raised here.
        """
        if self.finished:
            return None

        if self._aborted is not None and self._queue.empty():
            self.finished = True
            raise self._aborted

        kind, payload = await self._queue.get()
        if kind == "event":
            return payload

        self._queue.task_done()
        self.finished = True
        if kind == "error":
            raise payload
        return None

    def release(self) -> None:
        self._queue.task_done()


def _end_channel_with_producer(channel: EventChannel, producer: asyncio.Task) -> None:
    if producer.cancelled():
        channel.abort(RuntimeError("Task execution was cancelled"))
    elif producer.exception() is not None:
        channel.abort(RuntimeError(f"Task execution stopped: {producer.exception()!r}"))
    else:
        channel.abort(RuntimeError("Task execution ended without closing its event stream"))


class TaskFolder:
    """Incrementally folds an event sequence into a single Task."""

    def __init__(self) -> None:
        self.task: Optional[Task] = None

    def apply(self, event: Event) -> None:
        if isinstance(event, Task):
            self.task = event.model_copy(deep=True)
            return

        if self.task is None:
            raise ValueError(f"Received '{event.kind}' event before the task snapshot")

        if isinstance(event, Message):
            self.task.history.append(event)
        elif isinstance(event, TaskStatusUpdateEvent):
            self.task.status = event.status
        elif isinstance(event, TaskArtifactUpdateEvent):
            artifacts = [
                artifact
                for artifact in self.task.artifacts or []
                if artifact.artifactId != event.artifact.artifactId
            ]
            artifacts.append(event.artifact)
            self.task.artifacts = artifacts

    def fail(self, reason: str) -> Optional[TaskStatusUpdateEvent]:
        """Move the folded task to ``failed`` unless it already terminated.

        Returns the status update describing the transition so a stream can
        report it, or None when there is nothing to fail.
        """
        if self.task is None or self.task.status.state.is_terminal:
            return None

        failure = TaskStatusUpdateEvent(
            taskId=self.task.id,
            contextId=self.task.contextId,
            status=TaskStatus(
                state=TaskState.FAILED,
                timestamp=next_timestamp(self.task.status.timestamp),
                reason=reason,
            ),
            final=True,
        )
        self.apply(failure)
        return failure


class AgentExecutor:
    """
    Execution engine for the hello world agent.

    Every invocation emits: the submitted task snapshot, a ``working`` status
    update, the agent's reply message and a final ``completed`` status update.
    When the responder raises, the reply is replaced by a final ``failed``
    status update carrying the error as its reason. If the producer stops
    in any other way (including cancellation), consumers see an error and
    fold the task to ``failed`` themselves.
    """

    def __init__(self, responder: Optional[Responder] = None) -> None:
        self.responder = responder or HelloWorldResponder()

    async def execute(self, task_id: str, context_id: Optional[str], message: Message) -> AsyncIterator[Event]:
        """Yield the task's events in emission order."""
        channel = EventChannel()
        producer = asyncio.create_task(self._produce(task_id, context_id, message, channel))
        producer.add_done_callback(functools.partial(_end_channel_with_producer, channel))

        try:
            while True:
                event = await channel.receive()
                if event is None:
                    break
                try:
                    yield event
                finally:
                    channel.release()
        finally:
            if not channel.finished:
                # The consumer went away; let the producer finish its sequence.
                await self._drain(channel, task_id)
            if not producer.done():
                await asyncio.wait([producer])

    async def execute_send(self, task_id: str, context_id: Optional[str], message: Message) -> Task:
        """Execute the agent and return the final task (for non-streaming)."""
        folder = TaskFolder()

        try:
            async with aclosing(self.execute(task_id, context_id, message)) as events:
                async for event in events:
                    folder.apply(event)
        except Exception as exc:
            if folder.task is None:
                raise
            logger.exception("Task execution failed", extra={"task_id": task_id})
            folder.fail(str(exc) or type(exc).__name__)

        if folder.task is None:
            raise RuntimeError(f"Execution of task {task_id} produced no task snapshot")

        logger.info(
            "Task execution finished",
            extra={
                "task_id": task_id,
                "context_id": context_id,
                "state": folder.task.status.state.value,
                "history_count": len(folder.task.history),
            },
        )
        return folder.task

    async def _produce(
        self,
        task_id: str,
        context_id: Optional[str],
        message: Message,
        channel: EventChannel,
    ) -> None:
        try:
            await self._run(task_id, context_id, message, channel)
        except Exception as exc:
            logger.exception("Unexpected error while producing task events", extra={"task_id": task_id})
            await channel.fail(exc)
        else:
            await channel.close()

    async def _run(
        self,
        task_id: str,
        context_id: Optional[str],
        message: Message,
        channel: EventChannel,
    ) -> None:
        task = Task(
            id=task_id,
            contextId=context_id,
            status=TaskStatus(state=TaskState.SUBMITTED, timestamp=current_timestamp()),
            history=[message],
        )
        await channel.send(task)
        logger.debug("Task submitted", extra={"task_id": task_id, "context_id": context_id})

        working = TaskStatus(state=TaskState.WORKING, timestamp=next_timestamp(task.status.timestamp))
        await channel.send(
            TaskStatusUpdateEvent(taskId=task_id, contextId=context_id, status=working, final=False)
        )

        try:
            reply = await self.responder.invoke(message)
        except Exception as exc:
            if isinstance(exc, ResponderError):
                logger.warning("Responder declined to reply", extra={"task_id": task_id, "error": str(exc)})
            else:
                logger.exception("Responder failed", extra={"task_id": task_id})
            failed = TaskStatus(
                state=TaskState.FAILED,
                timestamp=next_timestamp(working.timestamp),
                reason=str(exc) or type(exc).__name__,
            )
            await channel.send(
                TaskStatusUpdateEvent(taskId=task_id, contextId=context_id, status=failed, final=True)
            )
            return

        await channel.send(
            Message(
                messageId=create_message_id(),
                role="agent",
                parts=[TextPart(text=reply)],
                contextId=context_id,
                taskId=task_id,
            )
        )

        completed = TaskStatus(state=TaskState.COMPLETED, timestamp=next_timestamp(working.timestamp))
        await channel.send(
            TaskStatusUpdateEvent(taskId=task_id, contextId=context_id, status=completed, final=True)
        )

    async def _drain(self, channel: EventChannel, task_id: str) -> None:
        try:
            while True:
                event = await channel.receive()
                if event is None:
                    return
                channel.release()
                logger.debug(
                    "Discarding event after consumer detached",
                    extra={"task_id": task_id, "event_kind": event.kind},
                )
        except Exception:
            logger.exception("Task execution failed after consumer detached", extra={"task_id": task_id})
