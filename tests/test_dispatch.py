import pytest

from loopforge.agent import ToolCallingAgent
from loopforge.errors import ToolExecutionError, UnknownToolError
from loopforge.messages import Message, MessageRole, ToolCall
from loopforge.models.mock import MockChatModel
from loopforge.tools.base import FunctionTool
from loopforge.tools.builtins.final_answer import FinalAnswerTool
from loopforge.tools.dispatch import ToolDispatcher
from loopforge.tools.registry import ToolRegistry


def _failing_tool() -> FunctionTool:
    def fail(arguments):
        raise RuntimeError("exploded")

    return FunctionTool(
        name="explode",
        description="always fails",
        inputs={},
        output_type="string",
        func=fail,
    )


def _answering_agent(name: str, answer: str) -> ToolCallingAgent:
    model = MockChatModel(
        scripted=[
            Message(
                role=MessageRole.ASSISTANT,
                tool_calls=(ToolCall(name="final_answer", arguments={"answer": answer}),),
            )
        ]
    )
    return ToolCallingAgent(model, name=name, description=f"{name} helper")


def test_unknown_tool_raises():
    dispatcher = ToolDispatcher(ToolRegistry())
    with pytest.raises(UnknownToolError) as excinfo:
        dispatcher.dispatch(ToolCall(name="nope", arguments={}))
    assert str(excinfo.value) == "unknown tool: nope"


def test_tool_failure_is_wrapped_with_cause():
    registry = ToolRegistry()
    registry.register(_failing_tool())
    dispatcher = ToolDispatcher(registry)
    with pytest.raises(ToolExecutionError) as excinfo:
        dispatcher.dispatch(ToolCall(name="explode", arguments={}))
    assert excinfo.value.tool_name == "explode"
    assert str(excinfo.value.cause) == "exploded"


def test_missing_required_argument_fails_before_execution():
    registry = ToolRegistry()
    registry.register(FinalAnswerTool())
    dispatcher = ToolDispatcher(registry)
    with pytest.raises(ToolExecutionError) as excinfo:
        dispatcher.dispatch(ToolCall(name="final_answer", arguments={}))
    assert "missing required argument: answer" in str(excinfo.value)


def test_managed_agent_is_checked_before_registry():
    registry = ToolRegistry()
    registry.register(_failing_tool())
    helper = _answering_agent("explode", "from agent")
    dispatcher = ToolDispatcher(registry, {"explode": helper})
    assert dispatcher.dispatch(ToolCall(name="explode", arguments={"task": "go"})) == "from agent"


def test_all_tools_exposes_managed_agents_with_task_input():
    registry = ToolRegistry()
    registry.register(FinalAnswerTool())
    dispatcher = ToolDispatcher(registry, {"helper": _answering_agent("helper", "ok")})
    tools = dispatcher.all_tools()
    assert [tool.name for tool in tools] == ["final_answer", "helper"]
    agent_tool = tools[1]
    assert agent_tool.description == "helper helper"
    assert list(agent_tool.inputs) == ["task"]
    assert agent_tool.inputs["task"].required is True
    assert agent_tool.output_type == "string"


def test_nested_agent_failure_surfaces_as_tool_error():
    model = MockChatModel(scripted=[RuntimeError("unused")])
    helper = ToolCallingAgent(model, name="helper")

    def broken_run(task, **kwargs):
        raise RuntimeError("nested boom")

    helper.run = broken_run
    dispatcher = ToolDispatcher(ToolRegistry(), {"helper": helper})
    with pytest.raises(ToolExecutionError) as excinfo:
        dispatcher.dispatch(ToolCall(name="helper", arguments={"task": "x"}))
    assert str(excinfo.value.cause) == "nested boom"
