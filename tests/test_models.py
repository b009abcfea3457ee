import pytest
from pydantic import TypeAdapter, ValidationError

from a2a_hello.a2a.models import (
    DataPart,
    Event,
    FilePart,
    Message,
    MessageSendParams,
    Task,
    TaskQueryParams,
    TaskState,
    TaskStatus,
    TaskStatusUpdateEvent,
    TextPart,
    create_context_id,
    create_message_id,
    create_task_id,
    next_timestamp,
    serialize_a2a,
)


class TestMessageModel:
    """Test message parsing from wire payloads."""

    def test_parts_are_discriminated_by_kind(self):
        message = Message.model_validate({
            "messageId": "m1",
            "role": "user",
            "parts": [
                {"kind": "text", "text": "hi"},
                {"kind": "data", "data": {"answer": 42}},
                {"kind": "file", "file": {"uri": "https://example.com/a.txt", "mimeType": "text/plain"}},
            ],
        })

        assert isinstance(message.parts[0], TextPart)
        assert isinstance(message.parts[1], DataPart)
        assert isinstance(message.parts[2], FilePart)
        assert message.parts[2].file.uri == "https://example.com/a.txt"
        assert message.kind == "message"

    def test_unknown_part_kind_is_rejected(self):
        with pytest.raises(ValidationError):
            Message.model_validate({
                "messageId": "m1",
                "role": "user",
                "parts": [{"kind": "video", "url": "x"}],
            })

    def test_role_must_be_user_or_agent(self):
        with pytest.raises(ValidationError):
            Message(messageId="m1", role="system", parts=[TextPart(text="hi")])

    def test_empty_parts_rejected(self):
        with pytest.raises(ValidationError):
            Message(messageId="m1", role="user", parts=[])

    def test_send_params_allow_missing_task_id(self):
        params = MessageSendParams.model_validate({
            "message": {"messageId": "m1", "role": "user", "parts": [{"kind": "text", "text": "Hello!"}]}
        })
        assert params.taskId is None
        assert params.message.contextId is None


class TestTaskModels:

    def test_task_state_terminal_flags(self):
        assert TaskState.COMPLETED.is_terminal
        assert TaskState.CANCELED.is_terminal
        assert TaskState.FAILED.is_terminal
        assert not TaskState.SUBMITTED.is_terminal
        assert not TaskState.WORKING.is_terminal
        assert not TaskState.INPUT_REQUIRED.is_terminal

    def test_task_query_params_accept_id_alias(self):
        assert TaskQueryParams.model_validate({"taskId": "t1"}).taskId == "t1"
        assert TaskQueryParams.model_validate({"id": "t2"}).taskId == "t2"

    def test_event_union_parses_by_kind(self):
        adapter = TypeAdapter(Event)
        event = adapter.validate_python({
            "kind": "status-update",
            "taskId": "t1",
            "status": {"state": "working", "timestamp": "2025-01-01T00:00:00.000Z"},
            "final": False,
        })
        assert isinstance(event, TaskStatusUpdateEvent)
        assert event.status.state is TaskState.WORKING

    def test_serialize_drops_none_fields(self):
        task = Task(
            id="t1",
            status=TaskStatus(state=TaskState.SUBMITTED, timestamp="2025-01-01T00:00:00.000Z"),
        )
        payload = serialize_a2a(task)

        assert payload == {
            "kind": "task",
            "id": "t1",
            "status": {"state": "submitted", "timestamp": "2025-01-01T00:00:00.000Z"},
            "history": [],
        }


class TestUtilities:

    def test_generated_ids_are_unique_and_prefixed(self):
        assert create_task_id().startswith("task_")
        assert create_context_id().startswith("ctx_")
        assert create_message_id() != create_message_id()

    def test_next_timestamp_never_goes_backwards(self):
        future = "2999-01-01T00:00:00.000Z"
        assert next_timestamp(future) == future

    def test_next_timestamp_format(self):
        stamp = next_timestamp()
        assert stamp.endswith("Z")
        # millisecond precision keeps timestamps lexicographically ordered
        assert len(stamp.split(".")[1]) == 4
