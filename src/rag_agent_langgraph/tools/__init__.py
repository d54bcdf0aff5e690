"""Tools exposed to the decision model, and the registry that dispatches them"""

from .registry import Tool, ToolRegistry, resolve_tool_input, ARGUMENT_KEY_PRIORITY
from .retriever_tool import make_retriever_tool, format_documents, RETRIEVER_TOOL_NAME
from .calculator import make_calculator_tool, CALCULATOR_TOOL_NAME

__all__ = [
    "Tool",
    "ToolRegistry",
    "resolve_tool_input",
    "ARGUMENT_KEY_PRIORITY",
    "make_retriever_tool",
    "format_documents",
    "RETRIEVER_TOOL_NAME",
    "make_calculator_tool",
    "CALCULATOR_TOOL_NAME",
]
