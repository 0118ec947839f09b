#
# src/deno_mcp/protocol/__init__.py
#
"""
Line-delimited JSON-RPC protocol: message model, framing, channel and dispatcher.
"""
from .channel import FramedChannel
from .dispatcher import Dispatcher
from .framing import FrameBuffer
from .messages import (
    ErrorObject,
    Message,
    Notification,
    Request,
    RequestId,
    Response,
    decode_message,
    encode_message,
)

__all__ = [
    "Dispatcher",
    "ErrorObject",
    "FrameBuffer",
    "FramedChannel",
    "Message",
    "Notification",
    "Request",
    "RequestId",
    "Response",
    "decode_message",
    "encode_message",
]

# 🔼⚙️
