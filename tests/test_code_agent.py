from __future__ import annotations

from typing import Any

from loopforge.agent import CodeAgent, RunState
from loopforge.errors import CodeExecutionError, ParsingError
from loopforge.executors.base import CodeExecutor, ExecutionResult
from loopforge.messages import Message, MessageRole
from loopforge.models.mock import MockChatModel
from loopforge.steps import ActionStep


class RecordingExecutor(CodeExecutor):
    """Return queued results and remember what was run."""

    def __init__(self, results: list[ExecutionResult]) -> None:
        self.results = list(results)
        self.runs: list[tuple[str, dict[str, Any]]] = []

    def execute(self, code: str, state: dict[str, Any]) -> ExecutionResult:
        self.runs.append((code, dict(state)))
        result = self.results.pop(0)
        state.update(result.state)
        return result


def _reply(content: str) -> Message:
    return Message(role=MessageRole.ASSISTANT, content=content)


def test_final_answer_code_ends_run():
    model = MockChatModel(scripted=[_reply("Thought: easy.\n<code>\nfinal_answer(15 * 23 + 100)\n</code>")])
    executor = RecordingExecutor([ExecutionResult(output=445, has_output=True)])
    agent = CodeAgent(model, executor)
    result = agent.run("compute")
    assert result.state == RunState.SUCCESS
    assert result.output == 445
    assert executor.runs[0][0] == "final_answer(15 * 23 + 100)"
    assert result.steps[1].code_action == "final_answer(15 * 23 + 100)"
    assert result.steps[1].is_final


def test_missing_code_block_records_parsing_error_without_executing():
    model = MockChatModel(
        scripted=[
            _reply("I think the answer is 4."),
            _reply("<code>final_answer(4)</code>"),
        ]
    )
    executor = RecordingExecutor([ExecutionResult(output=4, has_output=True)])
    agent = CodeAgent(model, executor)
    result = agent.run("2+2")
    first = result.steps[1]
    assert isinstance(first.error, ParsingError)
    assert str(first.error) == "no code block found"
    assert first.code_action is None
    assert len(executor.runs) == 1
    assert result.output == 4


def test_logs_become_observations_and_state_carries_over():
    model = MockChatModel(
        scripted=[
            _reply("<code>\nx = 10\nprint(x)\n</code>"),
            _reply("<code>\nfinal_answer(x * 2)\n</code>"),
        ]
    )
    executor = RecordingExecutor(
        [
            ExecutionResult(logs="10", state={"x": 10}),
            ExecutionResult(output=20, has_output=True, state={"x": 10}),
        ]
    )
    agent = CodeAgent(model, executor)
    result = agent.run("double it")
    assert result.steps[1].observations == "10"
    assert not result.steps[1].is_final
    assert executor.runs[1][1] == {"x": 10}
    assert result.output == 20
    assert agent.state == {"x": 10}


def test_execution_error_keeps_step_open():
    model = MockChatModel(
        scripted=[
            _reply("<code>final_answer(1/0)</code>"),
            _reply("<code>final_answer('recovered')</code>"),
        ]
    )
    failure = CodeExecutionError("exit status 1: ZeroDivisionError: division by zero")
    executor = RecordingExecutor(
        [
            ExecutionResult(logs="", error=failure),
            ExecutionResult(output="recovered", has_output=True),
        ]
    )
    agent = CodeAgent(model, executor)
    result = agent.run("divide")
    failed = result.steps[1]
    assert failed.error is failure
    assert not failed.is_final
    assert result.output == "recovered"
    second_request = model.calls[1][0]
    assert "ZeroDivisionError" in second_request[-1].content


def test_code_without_final_answer_is_not_final_even_with_output():
    model = MockChatModel(scripted=[_reply("<code>print('hi')</code>")])
    executor = RecordingExecutor([ExecutionResult(logs="hi")])
    agent = CodeAgent(model, executor)
    result = agent.run("say hi", max_steps=1)
    assert result.state == RunState.MAX_STEPS_EXCEEDED
    assert result.output is None


def test_stop_sequences_and_prompt():
    model = MockChatModel(scripted=[_reply("<code>final_answer(1)</code>")])
    agent = CodeAgent(model, RecordingExecutor([ExecutionResult(output=1, has_output=True)]))
    agent.run("one")
    _, options = model.calls[0]
    assert options.stop_sequences == ["Observation:", "</code>"]
    assert options.tools == []
    assert "def final_answer(answer: str) -> str:" in agent.system_prompt


def test_reset_clears_state_and_extra_args_seed_it():
    model = MockChatModel(
        scripted=[
            _reply("<code>final_answer(city)</code>"),
            _reply("<code>final_answer(1)</code>"),
        ]
    )
    executor = RecordingExecutor(
        [
            ExecutionResult(output="Paris", has_output=True, state={"city": "Paris", "y": 1}),
            ExecutionResult(output=1, has_output=True),
        ]
    )
    agent = CodeAgent(model, executor)
    first = agent.run("where", extra_args={"city": "Paris"})
    assert executor.runs[0][1] == {"city": "Paris"}
    assert first.output == "Paris"
    agent.run("again")
    assert executor.runs[1][1] == {}


def test_truncated_code_tag_still_executes():
    model = MockChatModel(scripted=[_reply("Thought: go\n<code>\nfinal_answer('cut')\n")])
    executor = RecordingExecutor([ExecutionResult(output="cut", has_output=True)])
    result = CodeAgent(model, executor).run("stop sequence")
    assert executor.runs[0][0] == "final_answer('cut')"
    assert isinstance(result.steps[1], ActionStep)
    assert result.output == "cut"
