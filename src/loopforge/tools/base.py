"""Base tool definitions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable

from pydantic import BaseModel


class ToolInput(BaseModel):
    type: str
    description: str = ""
    required: bool = False


class ToolSchema(BaseModel):
    name: str
    description: str
    inputs: dict[str, ToolInput]
    output_type: str


class Tool(ABC):
    """Abstract tool."""

    name: str
    description: str
    inputs: dict[str, ToolInput]
    output_type: str = "string"

    @abstractmethod
    def execute(self, arguments: dict[str, Any]) -> Any:
        """Execute the tool."""
        raise NotImplementedError

    def schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description=self.description,
            inputs=self.inputs,
            output_type=self.output_type,
        )

    def openai_schema(self) -> dict[str, Any]:
        """Return OpenAI-compatible tool schema."""
        properties = {
            name: {"type": spec.type, "description": spec.description}
            for name, spec in self.inputs.items()
        }
        required = [name for name, spec in self.inputs.items() if spec.required]
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": required,
                },
            },
        }


class FunctionTool(Tool):
    """Expose a plain callable as a tool; it receives the argument mapping."""

    def __init__(
        self,
        name: str,
        description: str,
        inputs: dict[str, ToolInput],
        output_type: str,
        func: Callable[[dict[str, Any]], Any],
    ) -> None:
        self.name = name
        self.description = description
        self.inputs = inputs
        self.output_type = output_type
        self._func = func

    def execute(self, arguments: dict[str, Any]) -> Any:
        return self._func(arguments)


def validate_arguments(tool: Tool, arguments: dict[str, Any]) -> None:
    """Raise when a required input is missing from ``arguments``."""
    for name, spec in tool.inputs.items():
        if spec.required and name not in arguments:
            raise ValueError(f"missing required argument: {name}")
