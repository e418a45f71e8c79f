"""Command-line interface."""

from __future__ import annotations

import argparse
from typing import Any
from uuid import uuid4

from loopforge.config import Settings
from loopforge.factory import build_agent, build_model
from loopforge.trace import TraceRecorder
from loopforge.util.logging import set_level


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="loopforge agent runner")
    parser.add_argument("task", type=str, help="Task to run")
    parser.add_argument("--agent", choices=["tool_calling", "code"], dest="agent_type")
    parser.add_argument("--executor", choices=["local", "docker"], dest="executor")
    parser.add_argument("--max-steps", type=int, dest="max_steps")
    parser.add_argument("--planning-interval", type=int, dest="planning_interval")
    parser.add_argument("--executor-timeout", type=float, dest="executor_timeout_seconds")
    parser.add_argument("--base-url", dest="base_url")
    parser.add_argument("--api-key", dest="api_key")
    parser.add_argument("--model", dest="model")
    parser.add_argument("--workspace", dest="workspace")
    parser.add_argument("--mock", action="store_true", dest="mock")
    parser.add_argument("--trace", action="store_true", dest="trace")
    parser.add_argument("--verbose", action="store_true", dest="verbose")
    return parser.parse_args(argv)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    data: dict[str, Any] = settings.model_dump()
    if args.base_url:
        data["openai_base_url"] = args.base_url
    if args.api_key:
        data["openai_api_key"] = args.api_key
    if args.model:
        data["openai_model"] = args.model
    if args.agent_type:
        data["agent_type"] = args.agent_type
    if args.executor:
        data["executor"] = args.executor
    if args.max_steps:
        data["max_steps"] = args.max_steps
    if args.planning_interval:
        data["planning_interval"] = args.planning_interval
    if args.executor_timeout_seconds:
        data["executor_timeout_seconds"] = args.executor_timeout_seconds
    if args.workspace:
        data["workspace_dir"] = args.workspace
    return Settings(**data)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    set_level("INFO" if args.verbose else "WARNING")
    settings = apply_overrides(Settings(), args)
    model = build_model(settings, use_mock=args.mock)
    agent = build_agent(settings, model)
    trace = None
    if args.trace:
        trace = TraceRecorder(trace_id=uuid4().hex, workspace_dir=settings.workspace_dir)
        trace.attach(agent)
    result = agent.run(args.task)
    print("State:", result.state.value)
    print("Steps:", len(result.steps))
    print(
        "Tokens:",
        f"{result.token_usage.total} (in: {result.token_usage.input_tokens}, "
        f"out: {result.token_usage.output_tokens})",
    )
    if trace is not None:
        print("Trace:", trace.finalize(result))
    print("Output:\n", result.output)


if __name__ == "__main__":
    main()
