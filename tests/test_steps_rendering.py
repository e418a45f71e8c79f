import json
import time

from loopforge.errors import GenerationError
from loopforge.messages import Message, MessageRole, Timing, TokenUsage, ToolCall
from loopforge.steps import ActionStep, FinalAnswerStep, PlanningStep, TaskStep


def _timing() -> Timing:
    return Timing.since(time.time())


def test_empty_action_step_renders_nothing():
    step = ActionStep(step_number=1, timing=_timing())
    assert step.to_messages() == []


def test_full_action_step_renders_four_messages_in_order():
    step = ActionStep(
        step_number=2,
        timing=_timing(),
        model_output="thinking",
        tool_calls=[ToolCall(id="call_1", name="calculator", arguments={"expression": "1+1"})],
        observations="2",
        error=GenerationError("model generation failed", RuntimeError("boom")),
    )
    messages = step.to_messages()
    assert [message.role for message in messages] == [
        MessageRole.ASSISTANT,
        MessageRole.ASSISTANT,
        MessageRole.USER,
        MessageRole.USER,
    ]
    assert messages[0].content == "thinking"
    assert messages[1].content.startswith("Calling tools:\n")
    calls = json.loads(messages[1].content.split("\n", 1)[1])
    assert calls == [
        {
            "id": "call_1",
            "type": "function",
            "function": {"name": "calculator", "arguments": {"expression": "1+1"}},
        }
    ]
    assert messages[2].content == "Observation:\n2"
    assert messages[3].content == (
        "Error:\nmodel generation failed: boom\nPlease try again or use another approach."
    )


def test_task_step_renders_user_message_with_images():
    step = TaskStep(task="count the cats", images=[b"\x89PNG"])
    (message,) = step.to_messages()
    assert message.role == MessageRole.USER
    assert message.content == "Task:\ncount the cats"
    assert message.images == (b"\x89PNG",)
    payload = message.to_dict()
    assert payload["content"][0] == {"type": "text", "text": "Task:\ncount the cats"}
    assert payload["content"][1]["image_url"]["url"].startswith("data:image/png;base64,")


def test_planning_step_renders_plan_and_follow_up():
    step = PlanningStep(plan="1. add\n2. answer", timing=_timing(), token_usage=TokenUsage(3, 4))
    messages = step.to_messages()
    assert [message.content for message in messages] == [
        "1. add\n2. answer",
        "Now proceed and carry out this plan.",
    ]
    assert messages[0].role == MessageRole.ASSISTANT


def test_final_answer_step_renders_nothing():
    assert FinalAnswerStep(output=42).to_messages() == []
    assert FinalAnswerStep(output=object()).to_dict()["output"].startswith("<object")


def test_tool_message_is_sent_as_user():
    message = Message(role=MessageRole.TOOL, content="result")
    assert message.to_dict() == {"role": "user", "content": "result"}


def test_token_usage_adds_fieldwise():
    total = TokenUsage(1, 2) + TokenUsage(10, 20)
    assert total == TokenUsage(11, 22)
    assert total.total == 33


def test_tool_call_gets_generated_id():
    first = ToolCall(name="final_answer", arguments={"answer": "x"})
    second = ToolCall(name="final_answer", arguments={"answer": "x"})
    assert first.id.startswith("call_")
    assert first.id != second.id
