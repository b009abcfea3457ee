"""
In-memory task store.

Owns every Task record served by the agent. One store is created per
application and shared by the send path, the streaming relay and the
``tasks/*`` methods, so all of them observe a single record per task id.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from .a2a.models import Task, TaskState, TaskStatus, next_timestamp

logger = logging.getLogger(__name__)


class InMemoryTaskStore:
    """Insertion-ordered mapping of task id to the latest Task snapshot."""

    def __init__(self) -> None:
        self._tasks: Dict[str, Task] = {}
        self._lock: Optional[asyncio.Lock] = None

    @property
    def lock(self) -> asyncio.Lock:
        """Get or create the asyncio lock for thread-safe operations."""
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def put(self, task: Task) -> None:
        """Insert or overwrite a task by its id."""
        async with self.lock:
            self._tasks[task.id] = task
        logger.debug("Stored task", extra={"task_id": task.id, "state": task.status.state.value})

    async def get(self, task_id: str) -> Optional[Task]:
        """Retrieve a task by ID, or None when it is unknown."""
        async with self.lock:
            return self._tasks.get(task_id)

    async def list(self, offset: int = 0, limit: int = 10) -> List[Task]:
        """Return a page of tasks in insertion order.

        Offsets outside the stored range (including negative ones) give an
        empty page rather than an error.
        """
        if offset < 0 or limit <= 0:
            return []
        async with self.lock:
            return list(self._tasks.values())[offset:offset + limit]

    async def count(self) -> int:
        async with self.lock:
            return len(self._tasks)

    async def cancel(self, task_id: str) -> Optional[Task]:
        """Mark a stored task as canceled, whatever its current state."""
        async with self.lock:
            task = self._tasks.get(task_id)
            if task is None:
                return None

            old_state = task.status.state
            task.status = TaskStatus(
                state=TaskState.CANCELED,
                timestamp=next_timestamp(task.status.timestamp),
            )

        logger.info(
            "Canceled A2A task",
            extra={"task_id": task_id, "old_state": old_state.value},
        )
        return task
