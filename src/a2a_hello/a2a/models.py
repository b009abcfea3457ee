"""
A2A (Agent-to-Agent) Protocol Data Models

Python implementation of the A2A types used by the hello world agent. Field
names follow the camelCase wire format so models can be dumped straight into
JSON-RPC responses and SSE frames.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, Field, field_validator


# ===== FOUNDATIONAL TYPES =====

class TaskState(str, Enum):
    """Defines the lifecycle states of a Task."""
    SUBMITTED = "submitted"
    WORKING = "working"
    INPUT_REQUIRED = "input-required"
    COMPLETED = "completed"
    CANCELED = "canceled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({TaskState.COMPLETED, TaskState.CANCELED, TaskState.FAILED})


# ===== CONTENT PARTS =====

class PartBase(BaseModel):
    """Defines base properties common to all message or artifact parts."""
    metadata: Optional[Dict[str, Any]] = None


class TextPart(PartBase):
    """Represents a text segment within a message or artifact."""
    kind: Literal["text"] = "text"
    text: str


class FileBase(BaseModel):
    """Defines base properties for a file."""
    name: Optional[str] = None
    mimeType: Optional[str] = None


class FileWithBytes(FileBase):
    """Represents a file with its content provided directly as a base64-encoded string."""
    bytes: str


class FileWithUri(FileBase):
    """Represents a file with its content located at a specific URI."""
    uri: str


class FilePart(PartBase):
    """Represents a file segment within a message or artifact."""
    kind: Literal["file"] = "file"
    file: Union[FileWithBytes, FileWithUri]


class DataPart(PartBase):
    """Represents a structured data segment within a message or artifact."""
    kind: Literal["data"] = "data"
    data: Any


Part = Annotated[Union[TextPart, FilePart, DataPart], Field(discriminator="kind")]


# ===== MESSAGES, TASKS AND ARTIFACTS =====

class Message(BaseModel):
    """Represents a single message in the conversation between a user and an agent."""
    kind: Literal["message"] = "message"
    messageId: str
    role: Literal["user", "agent"]
    parts: List[Part]
    contextId: Optional[str] = None
    taskId: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("parts")
    @classmethod
    def validate_parts(cls, v):
        if not v:
            raise ValueError("A message must contain at least one part")
        return v


class TaskStatus(BaseModel):
    """Represents the status of a task at a specific point in time."""
    state: TaskState
    timestamp: str
    reason: Optional[str] = None


class Artifact(BaseModel):
    """Represents a file, data structure, or other resource generated by an agent."""
    artifactId: str
    name: Optional[str] = None
    description: Optional[str] = None
    parts: List[Part]
    metadata: Optional[Dict[str, Any]] = None


class Task(BaseModel):
    """Represents a single, stateful operation or conversation between a client and an agent."""
    kind: Literal["task"] = "task"
    id: str
    contextId: Optional[str] = None
    status: TaskStatus
    history: List[Message] = Field(default_factory=list)
    artifacts: Optional[List[Artifact]] = None
    metadata: Optional[Dict[str, Any]] = None


# ===== EVENT TYPES =====

class TaskStatusUpdateEvent(BaseModel):
    """An event sent by the agent to notify the client of a change in a task's status."""
    kind: Literal["status-update"] = "status-update"
    taskId: str
    contextId: Optional[str] = None
    status: TaskStatus
    final: bool


class TaskArtifactUpdateEvent(BaseModel):
    """An event sent by the agent to notify the client that an artifact has been generated."""
    kind: Literal["artifact-update"] = "artifact-update"
    taskId: str
    contextId: Optional[str] = None
    artifact: Artifact


# Everything the execution engine can emit, in emission order.
Event = Annotated[
    Union[Task, TaskStatusUpdateEvent, TaskArtifactUpdateEvent, Message],
    Field(discriminator="kind"),
]


# ===== AGENT CARD =====

class AgentCapabilities(BaseModel):
    """Defines optional capabilities supported by an agent."""
    streaming: Optional[bool] = None
    pushNotifications: Optional[bool] = None
    stateTransitionHistory: Optional[bool] = None


class AgentSkill(BaseModel):
    """Represents a distinct capability or function that an agent can perform."""
    id: str
    name: str
    description: str
    tags: List[str]
    examples: Optional[List[str]] = None
    inputModes: Optional[List[str]] = None
    outputModes: Optional[List[str]] = None


class AgentCard(BaseModel):
    """The AgentCard is a self-describing manifest for an agent."""
    protocolVersion: str = "0.3.0"
    name: str
    description: str
    url: str
    preferredTransport: Optional[str] = None
    version: str
    capabilities: AgentCapabilities
    defaultInputModes: List[str] = ["text"]
    defaultOutputModes: List[str] = ["text"]
    skills: List[AgentSkill]
    supportsAuthenticatedExtendedCard: Optional[bool] = None


# ===== JSON-RPC 2.0 TYPES =====

class JSONRPCRequest(BaseModel):
    """Represents a JSON-RPC 2.0 Request object."""
    jsonrpc: Literal["2.0"]
    id: Optional[Union[int, str]] = None
    method: str
    params: Optional[Dict[str, Any]] = None


class JSONRPCError(BaseModel):
    """Represents a JSON-RPC 2.0 Error object."""
    code: int
    message: str
    data: Optional[Any] = None


class JSONRPCSuccessResponse(BaseModel):
    """Represents a successful JSON-RPC 2.0 Response object."""
    jsonrpc: Literal["2.0"] = "2.0"
    id: Optional[Union[int, str]] = None
    result: Any


class JSONRPCErrorResponse(BaseModel):
    """Represents a JSON-RPC 2.0 Error Response object."""
    jsonrpc: Literal["2.0"] = "2.0"
    id: Optional[Union[int, str]] = None
    error: JSONRPCError


# ===== A2A REQUEST/RESPONSE TYPES =====

class MessageSendParams(BaseModel):
    """Parameters for message/send and message/stream."""
    message: Message
    taskId: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class TaskIdParams(BaseModel):
    """Parameters containing a task ID for simple task operations."""
    taskId: str = Field(validation_alias=AliasChoices("taskId", "id"))
    metadata: Optional[Dict[str, Any]] = None


class TaskQueryParams(TaskIdParams):
    """Parameters for querying a task with optional history length."""
    historyLength: Optional[int] = Field(default=None, ge=0)


class ListTasksParams(BaseModel):
    """Parameters for tasks/list pagination."""
    offset: Optional[int] = None
    limit: Optional[int] = Field(default=None, ge=0)


class ListTasksResult(BaseModel):
    """Result object for tasks/list."""
    tasks: List[Task]
    totalSize: int
    offset: int
    limit: int


# ===== UTILITY FUNCTIONS =====

def generate_id(prefix: str = "") -> str:
    """Generate a unique ID for A2A entities."""
    return f"{prefix}{uuid4()}" if prefix else str(uuid4())


def create_task_id() -> str:
    """Generate a unique task ID."""
    return generate_id("task_")


def create_context_id() -> str:
    """Generate a unique context ID."""
    return generate_id("ctx_")


def create_message_id() -> str:
    """Generate a unique message ID."""
    return generate_id("msg_")


def create_artifact_id() -> str:
    """Generate a unique artifact ID."""
    return generate_id("art_")


def _format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def current_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision."""
    return _format_timestamp(datetime.now(timezone.utc))


def next_timestamp(previous: Optional[str] = None) -> str:
    """Return a timestamp that is never earlier than ``previous``.

    Status timestamps of a task must not go backwards even if the wall clock
    does, so the current time is clamped to the last recorded value.
    """
    now = datetime.now(timezone.utc)
    if previous:
        try:
            now = max(now, _parse_timestamp(previous))
        except ValueError:
            pass
    return _format_timestamp(now)


def serialize_a2a(obj: Any) -> Any:
    """Convert Pydantic models (and nested structures) into JSON-serializable dicts without nulls."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", exclude_none=True)
    if isinstance(obj, list):
        return [serialize_a2a(item) for item in obj]
    if isinstance(obj, dict):
        return {key: serialize_a2a(value) for key, value in obj.items() if value is not None}
    return obj
