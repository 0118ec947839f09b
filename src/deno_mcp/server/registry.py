#
# src/deno_mcp/server/registry.py
#
"""
Named tools with attrs-typed parameters, and the registry that calls them.
"""
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import attrs
import structlog
from attrs import define, field

from deno_mcp.exceptions import ConfigurationError, InvalidParamsError, RpcError
from deno_mcp.telemetry import StructLogger

log: StructLogger = structlog.get_logger("server.registry")

JSON_SCHEMA_DRAFT = "http://json-schema.org/draft-07/schema#"

ToolHandler = Callable[[Any], Awaitable["ToolResult"]]


@define(frozen=True, slots=True)
class TextContent:
    text: str
    type: str = field(default="text")

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


@define(frozen=True, slots=True)
class ToolResult:
    """What a tool hands back: content blocks plus an error flag."""
    content: list[TextContent] = field(factory=list)
    is_error: bool = field(default=False)

    @classmethod
    def text(cls, text: str, *, is_error: bool = False) -> "ToolResult":
        return cls(content=[TextContent(text=text)], is_error=is_error)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ToolResult":
        blocks = [
            TextContent(text=str(block.get("text", "")))
            for block in payload.get("content") or []
            if isinstance(block, Mapping) and block.get("type") == "text"
        ]
        return cls(content=blocks, is_error=bool(payload.get("isError", False)))

    @property
    def joined_text(self) -> str:
        return "".join(block.text for block in self.content)

    def to_dict(self) -> dict[str, Any]:
        return {"content": [block.to_dict() for block in self.content], "isError": self.is_error}


def param(
    *,
    schema: dict[str, Any],
    description: str | None = None,
    wire_name: str | None = None,
    default: Any = attrs.NOTHING,
    validator: Any = None,
) -> Any:
    """
    Declares a tool parameter on an attrs params class.

    `schema` is the JSON schema fragment for the value, `wire_name` the key
    used in the call arguments when it differs from the attribute name.
    """
    metadata: dict[str, Any] = {"schema": schema}
    if description:
        metadata["description"] = description
    if wire_name:
        metadata["wire_name"] = wire_name
    return field(default=default, validator=validator, metadata=metadata)


def _wire_name(attribute: attrs.Attribute) -> str:
    return attribute.metadata.get("wire_name", attribute.name)


def input_schema_for(params_type: type) -> dict[str, Any]:
    """Derives a draft-07 object schema from a params class."""
    properties: dict[str, Any] = {}
    required: list[str] = []
    for attribute in attrs.fields(params_type):
        prop: dict[str, Any] = {}
        if "description" in attribute.metadata:
            prop["description"] = attribute.metadata["description"]
        prop.update(attribute.metadata.get("schema", {}))
        if attribute.default is attrs.NOTHING:
            required.append(_wire_name(attribute))
        elif attribute.default is not None:
            prop["default"] = attribute.default
        properties[_wire_name(attribute)] = prop

    schema: dict[str, Any] = {
        "$schema": JSON_SCHEMA_DRAFT,
        "type": "object",
        "properties": properties,
    }
    if required:
        schema["required"] = required
    schema["additionalProperties"] = False
    return schema


def structure_params(params_type: type, arguments: Any) -> Any:
    """
    Builds a params object from call arguments.

    Raises:
        InvalidParamsError: On unknown keys, missing required keys or values
            rejected by the field validators.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise InvalidParamsError("Tool arguments must be an object")

    by_wire_name = {_wire_name(a): a for a in attrs.fields(params_type)}
    unknown = sorted(set(arguments) - set(by_wire_name))
    if unknown:
        raise InvalidParamsError(f"Unexpected argument(s): {', '.join(unknown)}")
    missing = sorted(
        name for name, a in by_wire_name.items() if a.default is attrs.NOTHING and name not in arguments
    )
    if missing:
        raise InvalidParamsError(f"Missing required argument(s): {', '.join(missing)}")

    kwargs = {by_wire_name[key].alias: value for key, value in arguments.items()}
    try:
        return params_type(**kwargs)
    except (TypeError, ValueError) as e:
        raise InvalidParamsError(f"Invalid arguments: {e}") from e


@define(frozen=True, slots=True)
class Tool:
    name: str
    handler: ToolHandler
    params_type: type
    title: str | None = field(default=None)
    description: str | None = field(default=None)

    @property
    def input_schema(self) -> dict[str, Any]:
        return input_schema_for(self.params_type)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name}
        if self.description:
            payload["description"] = self.description
        payload["inputSchema"] = self.input_schema
        if self.title:
            payload["annotations"] = {"title": self.title}
        return payload


class ToolRegistry:
    """Holds the tools a server exposes and invokes them by name."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def add(self, tool: Tool) -> Tool:
        if tool.name in self._tools:
            raise ConfigurationError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        log.debug("Tool registered", tool=tool.name)
        return tool

    def tool(
        self,
        name: str,
        params_type: type,
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator form of add()."""
        def decorator(handler: ToolHandler) -> ToolHandler:
            self.add(Tool(name=name, handler=handler, params_type=params_type, title=title, description=description))
            return handler
        return decorator

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_tools(self) -> list[Tool]:
        return list(self._tools.values())

    async def call(self, name: str, arguments: Any = None) -> ToolResult:
        """
        Validates the arguments and runs the tool.

        Protocol-level problems (unknown tool, bad arguments) raise RpcError
        subclasses. Anything the handler itself raises becomes an error result.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise InvalidParamsError(f"Tool {name} not found")
        params = structure_params(tool.params_type, arguments)
        tool_log = log.bind(tool=name)
        tool_log.info("Calling tool")
        try:
            result = await tool.handler(params)
        except RpcError:
            raise
        except Exception as e:
            tool_log.exception("Tool handler raised")
            return ToolResult.text(str(e) or type(e).__name__, is_error=True)
        tool_log.info("Tool finished", is_error=result.is_error)
        return result

# 🔼⚙️
