"""Nested agents exposed as tools."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loopforge.tools.base import Tool, ToolInput

if TYPE_CHECKING:
    from loopforge.agent import BaseAgent


class AgentTool(Tool):
    """Run a managed agent to completion and return its output."""

    output_type = "string"

    def __init__(self, agent: BaseAgent) -> None:
        self.agent = agent
        self.name = agent.name
        self.description = agent.description
        self.inputs = {
            "task": ToolInput(type="string", description="Task for this agent", required=True)
        }

    def execute(self, arguments: dict[str, Any]) -> Any:
        task = arguments.get("task", "")
        result = self.agent.run(str(task))
        return result.output
