"""Tool registry."""

from __future__ import annotations

from typing import Iterable

from loopforge.tools.base import Tool

_PYTHON_TYPES = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "array": "list",
    "object": "dict",
}


class ToolRegistry:
    """Registry of tools available to the agent."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool

    def register_all(self, tools: Iterable[Tool]) -> None:
        for tool in tools:
            self.register(tool)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list(self) -> list[Tool]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def openai_schemas(self) -> list[dict]:
        return [tool.openai_schema() for tool in self._tools.values()]

    def to_code_prompt(self) -> str:
        return render_code_prompt(self._tools.values())


def python_type(type_name: str) -> str:
    return _PYTHON_TYPES.get(type_name, "Any")


def render_code_prompt(tools: Iterable[Tool]) -> str:
    """Render tools as Python function stubs for prompts."""
    chunks = []
    for tool in tools:
        params = ", ".join(
            f"{name}: {python_type(spec.type)}" for name, spec in tool.inputs.items()
        )
        chunks.append(
            f"def {tool.name}({params}) -> {python_type(tool.output_type)}:\n"
            f'    """{tool.description}"""\n'
        )
    return "\n".join(chunks)
