"""Step records stored in agent memory."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar

from loopforge.messages import Message, MessageRole, Timing, TokenUsage, ToolCall

PLANNING_FOLLOW_UP = "Now proceed and carry out this plan."


def format_tool_calls(tool_calls: list[ToolCall]) -> str:
    """Render tool calls as the text an assistant message carries in history."""
    calls = [
        {
            "id": call.id,
            "type": "function",
            "function": {"name": call.name, "arguments": call.arguments},
        }
        for call in tool_calls
    ]
    return "Calling tools:\n" + json.dumps(calls, default=str)


def jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


@dataclass
class TaskStep:
    step_type: ClassVar[str] = "task"

    task: str
    images: list[bytes] = field(default_factory=list)

    def to_messages(self) -> list[Message]:
        return [Message(role=MessageRole.USER, content=f"Task:\n{self.task}", images=tuple(self.images))]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.step_type, "task": self.task, "images": len(self.images)}


@dataclass
class ActionStep:
    """One model call and whatever it triggered."""

    step_type: ClassVar[str] = "action"

    step_number: int
    timing: Timing
    model_output: str = ""
    code_action: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    observations: str = ""
    error: Exception | None = None
    token_usage: TokenUsage | None = None
    is_final: bool = False

    def to_messages(self) -> list[Message]:
        messages: list[Message] = []
        if self.model_output:
            messages.append(Message(role=MessageRole.ASSISTANT, content=self.model_output))
        if self.tool_calls:
            messages.append(
                Message(role=MessageRole.ASSISTANT, content=format_tool_calls(self.tool_calls))
            )
        if self.observations:
            messages.append(
                Message(role=MessageRole.USER, content=f"Observation:\n{self.observations}")
            )
        if self.error is not None:
            messages.append(
                Message(
                    role=MessageRole.USER,
                    content=f"Error:\n{self.error}\nPlease try again or use another approach.",
                )
            )
        return messages

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.step_type,
            "step_number": self.step_number,
            "timing": self.timing.to_dict(),
            "model_output": self.model_output,
            "code_action": self.code_action,
            "tool_calls": [call.model_dump() for call in self.tool_calls],
            "observations": self.observations,
            "error": str(self.error) if self.error is not None else None,
            "token_usage": self.token_usage.to_dict() if self.token_usage else None,
            "is_final_answer": self.is_final,
        }


@dataclass
class PlanningStep:
    step_type: ClassVar[str] = "planning"

    plan: str
    timing: Timing
    token_usage: TokenUsage | None = None

    def to_messages(self) -> list[Message]:
        return [
            Message(role=MessageRole.ASSISTANT, content=self.plan),
            Message(role=MessageRole.USER, content=PLANNING_FOLLOW_UP),
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.step_type,
            "plan": self.plan,
            "timing": self.timing.to_dict(),
            "token_usage": self.token_usage.to_dict() if self.token_usage else None,
        }


@dataclass
class FinalAnswerStep:
    step_type: ClassVar[str] = "final_answer"

    output: Any

    def to_messages(self) -> list[Message]:
        return []

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.step_type, "output": jsonable(self.output)}


Step = TaskStep | ActionStep | PlanningStep | FinalAnswerStep
