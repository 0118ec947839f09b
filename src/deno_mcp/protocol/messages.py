#
# src/deno_mcp/protocol/messages.py
#
"""
JSON-RPC 2.0 message model and its wire encoding.

A frame on the wire is one JSON object on one line. Three shapes exist:
requests carry an id and a method, notifications carry a method only, and
responses carry the id of the request they answer plus a result or an error.
"""

import json
from typing import Any, TypeAlias

from attrs import define, field

from deno_mcp.exceptions import MessageDecodeError, RpcError

JSONRPC_VERSION = "2.0"

# MCP protocol revisions this implementation speaks, newest first.
SUPPORTED_PROTOCOL_VERSIONS = ("2025-03-26", "2024-11-05", "2024-10-07")
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[0]

RequestId: TypeAlias = int | str


@define(frozen=True, slots=True)
class ErrorObject:
    """The `error` member of an error response."""

    code: int
    message: str
    data: Any = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        return payload

    @classmethod
    def from_exception(cls, exc: RpcError) -> "ErrorObject":
        return cls(code=exc.code, message=exc.message, data=exc.data)

    def to_exception(self) -> RpcError:
        return RpcError(self.message, code=self.code, data=self.data)


@define(frozen=True, slots=True)
class Request:
    id: RequestId
    method: str
    params: dict[str, Any] | list[Any] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": self.id, "method": self.method}
        if self.params is not None:
            payload["params"] = self.params
        return payload


@define(frozen=True, slots=True)
class Notification:
    method: str
    params: dict[str, Any] | list[Any] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": self.method}
        if self.params is not None:
            payload["params"] = self.params
        return payload


@define(frozen=True, slots=True)
class Response:
    """A success response (error is None) or an error response."""

    id: RequestId | None
    result: Any = field(default=None)
    error: ErrorObject | None = field(default=None)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.to_dict()
        else:
            payload["result"] = self.result
        return payload


Message: TypeAlias = Request | Notification | Response


def encode_message(message: Message) -> bytes:
    """Serializes a message into one newline-terminated UTF-8 frame."""
    text = json.dumps(message.to_dict(), ensure_ascii=False, separators=(",", ":"))
    return text.encode("utf-8") + b"\n"


def _valid_id(value: Any) -> bool:
    # bool is a subclass of int but never a valid id
    return isinstance(value, (int, str)) and not isinstance(value, bool)


def _valid_params(value: Any) -> bool:
    return value is None or isinstance(value, (dict, list))


def message_from_dict(payload: Any, frame: bytes | None = None) -> Message:
    """Classifies a decoded JSON value as a request, notification or response."""
    if not isinstance(payload, dict):
        raise MessageDecodeError("Message must be a JSON object", frame=frame)

    params = payload.get("params")
    if "method" in payload:
        method = payload["method"]
        if not isinstance(method, str):
            raise MessageDecodeError("Field 'method' must be a string", frame=frame)
        if not _valid_params(params):
            raise MessageDecodeError("Field 'params' must be an object or an array", frame=frame)
        if "id" in payload and payload["id"] is not None:
            if not _valid_id(payload["id"]):
                raise MessageDecodeError("Field 'id' must be a string or an integer", frame=frame)
            return Request(id=payload["id"], method=method, params=params)
        return Notification(method=method, params=params)

    if "result" in payload or "error" in payload:
        msg_id = payload.get("id")
        if msg_id is not None and not _valid_id(msg_id):
            raise MessageDecodeError("Field 'id' must be a string or an integer", frame=frame)
        if "error" in payload and payload["error"] is not None:
            error = payload["error"]
            if not isinstance(error, dict) or not isinstance(error.get("code"), int) or "message" not in error:
                raise MessageDecodeError("Field 'error' must be an object with 'code' and 'message'", frame=frame)
            return Response(
                id=msg_id,
                error=ErrorObject(code=error["code"], message=str(error["message"]), data=error.get("data")),
            )
        return Response(id=msg_id, result=payload.get("result"))

    raise MessageDecodeError("Message is neither a request, a notification nor a response", frame=frame)


def decode_message(frame: bytes) -> Message:
    """Decodes a single frame (without its delimiter) into a message."""
    try:
        text = frame.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MessageDecodeError("Frame is not valid UTF-8", frame=frame, details=e) from e
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MessageDecodeError(f"Invalid JSON: {e.msg}", frame=frame, details=e) from e
    return message_from_dict(payload, frame=frame)

# 🔼⚙️
