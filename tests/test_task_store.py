import pytest

from a2a_hello.a2a.models import Task, TaskState, TaskStatus
from a2a_hello.task_store import InMemoryTaskStore


def make_task(task_id, state=TaskState.COMPLETED):
    return Task(
        id=task_id,
        contextId="ctx-1",
        status=TaskStatus(state=state, timestamp="2025-01-01T00:00:00.000Z"),
    )


class TestInMemoryTaskStore:
    """Test task storage, pagination and cancellation."""

    @pytest.mark.asyncio
    async def test_put_and_get(self):
        store = InMemoryTaskStore()
        task = make_task("t1")

        await store.put(task)

        assert await store.get("t1") == task
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_put_overwrites_by_id(self):
        store = InMemoryTaskStore()
        await store.put(make_task("t1", TaskState.WORKING))
        await store.put(make_task("t1", TaskState.COMPLETED))

        assert await store.count() == 1
        assert (await store.get("t1")).status.state == TaskState.COMPLETED

    @pytest.mark.asyncio
    async def test_list_pages_in_insertion_order(self):
        store = InMemoryTaskStore()
        for index in range(5):
            await store.put(make_task(f"t{index}"))

        first = await store.list(offset=0, limit=2)
        second = await store.list(offset=2, limit=2)
        last = await store.list(offset=4, limit=2)

        assert [task.id for task in first] == ["t0", "t1"]
        assert [task.id for task in second] == ["t2", "t3"]
        assert [task.id for task in last] == ["t4"]

    @pytest.mark.asyncio
    async def test_list_out_of_range_is_empty(self):
        store = InMemoryTaskStore()
        await store.put(make_task("t1"))

        assert await store.list(offset=5, limit=10) == []
        assert await store.list(offset=-1, limit=10) == []
        assert await store.list(offset=0, limit=0) == []

    @pytest.mark.asyncio
    async def test_list_does_not_mutate(self):
        store = InMemoryTaskStore()
        for index in range(3):
            await store.put(make_task(f"t{index}"))

        assert await store.list() == await store.list()
        assert await store.count() == 3

    @pytest.mark.asyncio
    async def test_cancel_known_task(self):
        store = InMemoryTaskStore()
        await store.put(make_task("t1", TaskState.WORKING))

        task = await store.cancel("t1")

        assert task.status.state == TaskState.CANCELED
        assert task.status.timestamp >= "2025-01-01T00:00:00.000Z"
        assert (await store.get("t1")).status.state == TaskState.CANCELED

    @pytest.mark.asyncio
    async def test_cancel_overwrites_terminal_state(self):
        store = InMemoryTaskStore()
        await store.put(make_task("t1", TaskState.COMPLETED))

        task = await store.cancel("t1")

        assert task.status.state == TaskState.CANCELED

    @pytest.mark.asyncio
    async def test_cancel_unknown_task(self):
        store = InMemoryTaskStore()

        assert await store.cancel("missing") is None
        assert await store.count() == 0
