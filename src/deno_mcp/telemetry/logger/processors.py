#
# src/deno_mcp/telemetry/logger/processors.py
#
"""
Custom structlog processors.
"""
import logging
from typing import Any

from structlog.typing import EventDict, WrappedLogger

LOG_EMOJIS = {
    "debug": "🐛",
    "info": "ℹ️",  # noqa: RUF001
    "warning": "⚠️",
    "error": "❌",
    "critical": "💥",
    "exception": "💥",
}

# Keys that only make sense for the TTY renderer.
_INTERNAL_KEYS = ("emoji",)


def add_emoji_processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Prefix the event with an emoji for its level, unless one was given explicitly."""
    emoji = event_dict.pop("emoji", None) or LOG_EMOJIS.get(method_name)
    event = event_dict.get("event")
    if emoji and isinstance(event, str):
        event_dict["event"] = f"{emoji} {event}"
    return event_dict


def remove_extra_keys_processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Drop keys used only to steer other processors."""
    for key in _INTERNAL_KEYS:
        event_dict.pop(key, None)
    return event_dict


def level_number(level_name: str) -> int:
    value: Any = logging.getLevelName(level_name.upper())
    return value if isinstance(value, int) else logging.INFO

# 🔼⚙️
