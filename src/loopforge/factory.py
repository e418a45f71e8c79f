"""Shared construction helpers for models, tools, executors, and agents."""

from __future__ import annotations

import json

from loopforge.agent import BaseAgent, CodeAgent, ToolCallingAgent
from loopforge.config import Settings
from loopforge.executors.base import CodeExecutor
from loopforge.executors.container import DockerExecutor
from loopforge.executors.local import LocalPythonExecutor
from loopforge.models.base import BaseChatModel
from loopforge.models.mock import MockChatModel
from loopforge.models.openai_compat import OpenAICompatChatModel
from loopforge.tools.base import Tool
from loopforge.tools.builtins.calculator import CalculatorTool
from loopforge.tools.builtins.visit_webpage import VisitWebpageTool


def build_model(settings: Settings, use_mock: bool = False) -> BaseChatModel:
    if use_mock or not settings.openai_api_key:
        return MockChatModel()
    extra_headers = None
    if settings.openai_extra_headers:
        extra_headers = json.loads(settings.openai_extra_headers)
    return OpenAICompatChatModel(
        base_url=settings.openai_base_url,
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout_seconds=settings.openai_timeout_seconds,
        temperature=settings.openai_temperature,
        max_tokens=settings.openai_max_tokens,
        extra_headers=extra_headers,
        disable_tool_choice=settings.openai_disable_tool_choice,
    )


def build_tools(settings: Settings) -> list[Tool]:
    return [CalculatorTool(), VisitWebpageTool(timeout_seconds=settings.openai_timeout_seconds)]


def build_executor(settings: Settings) -> CodeExecutor:
    if settings.executor == "docker":
        return DockerExecutor(
            image=settings.docker_image,
            timeout_seconds=settings.executor_timeout_seconds,
            memory_limit=settings.docker_memory,
            cpus=settings.docker_cpus,
        )
    return LocalPythonExecutor(
        python_path=settings.python_path,
        timeout_seconds=settings.executor_timeout_seconds,
        workspace_dir=settings.workspace_dir,
    )


def build_agent(
    settings: Settings,
    model: BaseChatModel,
    *,
    tools: list[Tool] | None = None,
    executor: CodeExecutor | None = None,
    managed_agents: list[BaseAgent] | None = None,
    name: str = "agent",
    description: str = "",
) -> BaseAgent:
    if settings.agent_type == "code":
        return CodeAgent(
            model,
            executor or build_executor(settings),
            name=name,
            description=description,
            max_steps=settings.max_steps,
            planning_interval=settings.planning_interval,
        )
    return ToolCallingAgent(
        model,
        name=name,
        description=description,
        tools=build_tools(settings) if tools is None else tools,
        managed_agents=managed_agents,
        max_steps=settings.max_steps,
        planning_interval=settings.planning_interval,
    )
