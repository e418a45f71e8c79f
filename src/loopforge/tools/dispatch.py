"""Resolve tool calls to managed agents or registered tools."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loopforge.errors import ToolExecutionError, UnknownToolError
from loopforge.messages import ToolCall
from loopforge.tools.agent_tool import AgentTool
from loopforge.tools.base import Tool, validate_arguments
from loopforge.tools.registry import ToolRegistry
from loopforge.util.logging import get_logger, redact

if TYPE_CHECKING:
    from loopforge.agent import BaseAgent


logger = get_logger(__name__)


class ToolDispatcher:
    """One call in, one result or error out. Managed agents shadow tools."""

    def __init__(self, registry: ToolRegistry, managed_agents: dict[str, BaseAgent] | None = None) -> None:
        self.registry = registry
        self.managed_agents = managed_agents or {}

    def all_tools(self) -> list[Tool]:
        tools = self.registry.list()
        tools.extend(AgentTool(agent) for agent in self.managed_agents.values())
        return tools

    def resolve(self, name: str) -> Tool:
        agent = self.managed_agents.get(name)
        if agent is not None:
            return AgentTool(agent)
        tool = self.registry.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def dispatch(self, tool_call: ToolCall) -> Any:
        tool = self.resolve(tool_call.name)
        logger.info(
            "Dispatching tool %s with %s", tool_call.name, redact(str(tool_call.arguments))
        )
        try:
            validate_arguments(tool, tool_call.arguments)
            return tool.execute(tool_call.arguments)
        except Exception as exc:  # noqa: BLE001
            raise ToolExecutionError(tool_call.name, exc) from exc
