from typing import Literal

from pydantic import BaseModel, Field

from rag_agent_langgraph.tools.registry import Tool

CALCULATOR_TOOL_NAME = "calculate"


class CalculatorInput(BaseModel):
    """Arguments for the calculator tool."""
    operation: Literal["add", "subtract", "multiply", "divide"] = Field(
        description="The mathematical operation to perform"
    )
    a: float = Field(description="First number")
    b: float = Field(description="Second number")


def calculate(arguments: dict) -> str:
    args = CalculatorInput.model_validate(arguments)
    a, b = args.a, args.b

    if args.operation == "add":
        result = a + b
    elif args.operation == "subtract":
        result = a - b
    elif args.operation == "multiply":
        result = a * b
    elif b == 0:
        return "Error: Division by zero"
    else:
        result = a / b

    return f"The result of {a:g} {args.operation} {b:g} is {result:g}."


def make_calculator_tool() -> Tool:
    return Tool(
        name=CALCULATOR_TOOL_NAME,
        description="Perform mathematical calculations.",
        parameters=CalculatorInput,
        handler=calculate,
        takes_mapping=True,
    )
