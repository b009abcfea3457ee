"""JSON-RPC error taxonomy for the A2A front door."""

from __future__ import annotations

from typing import Any, Optional

from .a2a.models import JSONRPCError


class A2AError(Exception):
    """Base class for errors surfaced to clients as JSON-RPC error objects."""

    code: int = -32603
    message: str = "Internal error"
    http_status: int = 500

    def __init__(self, message: Optional[str] = None, *, data: Optional[Any] = None) -> None:
        self.message = message or self.message
        self.data = data
        super().__init__(self.message)

    def to_jsonrpc_error(self) -> JSONRPCError:
        """Serialize the exception into a JSON-RPC error object."""
        return JSONRPCError(code=self.code, message=self.message, data=self.data)


class ParseError(A2AError):
    """The request body is not a valid JSON-RPC 2.0 envelope."""

    code = -32700
    message = "Parse error"
    http_status = 400


class InvalidParamsError(A2AError):
    code = -32602
    message = "Invalid params"
    http_status = 400


class MethodNotFoundError(A2AError):
    code = -32601
    message = "Method not found"
    http_status = 404


class TaskNotFoundError(A2AError):
    """The requested task identifier is unknown to the task store."""

    code = -32001
    message = "Task not found"
    http_status = 404


class InternalError(A2AError):
    code = -32603
    message = "Internal error"
    http_status = 500


class ResponderError(Exception):
    """Raised by a responder when it cannot produce a reply."""
