#
# src/deno_mcp/exceptions.py
#
"""
Exception hierarchy for deno-mcp.

Everything raised on purpose by this package derives from DenoMcpError.
"""

from typing import Any

# JSON-RPC 2.0 error codes
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class DenoMcpError(Exception):
    """Base class for all deno-mcp errors."""

    pass


class ConfigurationError(DenoMcpError):
    """Invalid or unusable configuration."""

    pass


# --- Protocol errors ---
class ProtocolError(DenoMcpError):
    """Base class for errors at the message level."""

    pass


class MessageDecodeError(ProtocolError):
    """A frame could not be decoded into a protocol message."""

    def __init__(self, message: str, frame: bytes | None = None, details: Exception | None = None):
        self.frame = frame
        self.details = details
        super().__init__(message)
        if details and hasattr(self, "add_note"):
            self.add_note(f"Original error: {type(details).__name__}: {details}")


class RpcError(ProtocolError):
    """
    An error carried by a JSON-RPC error response.

    Raised on the requesting side when the peer answers with an error object,
    and raised by request handlers to control the error object that is sent.
    """

    code: int = INTERNAL_ERROR

    def __init__(self, message: str, code: int | None = None, data: Any = None):
        if code is not None:
            self.code = code
        self.message = message
        self.data = data
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code}, message={self.message!r})"


class MethodNotFoundError(RpcError):
    code = METHOD_NOT_FOUND

    def __init__(self, method: str | None = None, data: Any = None):
        self.method = method
        super().__init__("Method not found", data=data)


class InvalidParamsError(RpcError):
    code = INVALID_PARAMS


# --- Transport errors ---
class TransportError(DenoMcpError):
    """Base class for stream and process level failures."""

    pass


class TransportStateError(TransportError):
    """A lifecycle operation was attempted in the wrong state."""

    pass


class TransportLaunchError(TransportError):
    """The child process for a client transport could not be spawned."""

    def __init__(self, command: str, details: Exception | None = None):
        self.command = command
        self.details = details
        message = f"Failed to launch '{command}'"
        if details:
            message += f": {details}"
        super().__init__(message)


class ChannelClosedError(TransportError):
    """The channel closed before the operation could complete."""

    def __init__(self, reason: str = "channel closed"):
        self.reason = reason
        super().__init__(f"Channel closed: {reason}" if reason != "channel closed" else "Channel closed")


class RequestTimeoutError(DenoMcpError):
    """No response arrived for a request within the caller's timeout."""

    def __init__(self, method: str, timeout: float):
        self.method = method
        self.timeout = timeout
        super().__init__(f"Request '{method}' timed out after {timeout}s")


# --- Subprocess errors ---
class CommandError(DenoMcpError):
    """A command could not be executed at all (not found, permission denied...)."""

    def __init__(self, message: str, command: list[str] | None = None, details: Exception | None = None):
        self.command = command
        self.details = details
        super().__init__(message)

# 🔼⚙️
