"""
Tool registry and dispatch contract.

A tool is a plain descriptor: name, description, pydantic parameter schema and
a handler. The registry owns argument normalization so handlers never have to
guess which key the calling model used.
"""

import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Type, Union

from langchain_core.messages import ToolCall, ToolMessage
from pydantic import BaseModel

from rag_agent_langgraph.core.errors import ToolDispatchError, UnknownToolError

logger = logging.getLogger(__name__)

# Models are not schema-strict about parameter names; try these in order.
ARGUMENT_KEY_PRIORITY = ("query", "question", "text", "input")

HandlerResult = Union[str, tuple[str, Any]]
Handler = Callable[[Any], Union[HandlerResult, Awaitable[HandlerResult]]]


def resolve_tool_input(arguments: Any) -> str:
    """
    Reduce model-supplied arguments to the single text input a tool expects.

    Scalars pass through as text. Mappings are probed by ARGUMENT_KEY_PRIORITY;
    if none of those keys holds a value the whole object is JSON-stringified.
    """
    if arguments is None:
        return ""
    if not isinstance(arguments, Mapping):
        return str(arguments)

    for key in ARGUMENT_KEY_PRIORITY:
        value = arguments.get(key)
        if value is not None and value != "":
            return value if isinstance(value, str) else json.dumps(value)

    return json.dumps(dict(arguments), sort_keys=True, default=str)


@dataclass(frozen=True)
class Tool:
    """
    A callable tool exposed to the decision model.

    Handlers receive the resolved text input, or the raw argument mapping when
    `takes_mapping` is set. They may be sync or async, and may return either
    the result text or a (text, artifact) pair.
    """
    name: str
    description: str
    parameters: Type[BaseModel]
    handler: Handler
    takes_mapping: bool = False

    def schema(self) -> dict:
        """OpenAI function-tool format accepted by `bind_tools`."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters.model_json_schema(),
            },
        }

    async def invoke(self, arguments: Any) -> tuple[str, Any]:
        if self.takes_mapping:
            payload = dict(arguments) if isinstance(arguments, Mapping) else {"input": arguments}
        else:
            payload = resolve_tool_input(arguments)

        result = self.handler(payload)
        if inspect.isawaitable(result):
            result = await result

        if isinstance(result, tuple):
            content, artifact = result
            return str(content), artifact
        return str(result), None


class ToolRegistry:
    """Read-only set of tools, shared by reference across runs."""

    def __init__(self, tools: list[Tool]):
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name '{tool.name}'")
            self._tools[tool.name] = tool

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name, self.names) from None

    def schemas(self) -> list[dict]:
        return [tool.schema() for tool in self._tools.values()]

    async def dispatch(self, intent: ToolCall) -> ToolMessage:
        """
        Execute one intent and wrap the result in a correlated tool message.

        Unknown tool names raise UnknownToolError. Handler failures are
        captured as an error tool message so the conversation can continue.
        """
        tool = self.get(intent["name"])
        try:
            content, artifact = await tool.invoke(intent.get("args"))
        except Exception as e:
            error = ToolDispatchError(tool.name, e)
            logger.warning("Tool dispatch failed: %s", error)
            return ToolMessage(
                content=f"Error: {error}",
                tool_call_id=intent["id"],
                name=tool.name,
                status="error",
            )

        return ToolMessage(
            content=content,
            tool_call_id=intent["id"],
            name=tool.name,
            artifact=artifact,
        )
