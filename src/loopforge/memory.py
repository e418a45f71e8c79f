"""Step history and its rendering into model input."""

from __future__ import annotations

from dataclasses import dataclass, field

from loopforge.messages import Message, MessageRole, TokenUsage
from loopforge.steps import ActionStep, FinalAnswerStep, PlanningStep, Step, TaskStep


@dataclass
class AgentMemory:
    """Append-only step log owned by a single agent.

    The agent's run lock is the only synchronization; nothing here locks.
    """

    system_prompt: str
    steps: list[Step] = field(default_factory=list)

    def reset(self) -> None:
        self.steps = []

    def add_step(self, step: Step) -> None:
        self.steps.append(step)

    def last_step(self) -> Step | None:
        if not self.steps:
            return None
        return self.steps[-1]

    def action_steps(self) -> list[ActionStep]:
        return [step for step in self.steps if isinstance(step, ActionStep)]

    def to_messages(self) -> list[Message]:
        messages = [Message(role=MessageRole.SYSTEM, content=self.system_prompt)]
        for step in self.steps:
            messages.extend(step.to_messages())
        return messages

    def total_tokens(self) -> TokenUsage:
        total = TokenUsage()
        for step in self.steps:
            if isinstance(step, (ActionStep, PlanningStep)) and step.token_usage is not None:
                total = total + step.token_usage
        return total

    def summary(self) -> str:
        lines = [f"Memory: {len(self.steps)} steps"]
        for index, step in enumerate(self.steps):
            if isinstance(step, TaskStep):
                lines.append(f"  [{index}] Task: {_truncate(step.task, 50)}")
            elif isinstance(step, ActionStep):
                lines.append(f"  [{index}] Action #{step.step_number}: {_action_status(step)}")
            elif isinstance(step, PlanningStep):
                lines.append(f"  [{index}] Planning: {_truncate(step.plan, 50)}")
            elif isinstance(step, FinalAnswerStep):
                lines.append(f"  [{index}] Final Answer")
        tokens = self.total_tokens()
        lines.append(
            f"Total tokens: {tokens.total} (in: {tokens.input_tokens}, out: {tokens.output_tokens})"
        )
        return "\n".join(lines)


def _action_status(step: ActionStep) -> str:
    if step.is_final:
        return "final"
    if step.error is not None:
        return "error"
    if step.observations:
        return "done"
    return "pending"


def _truncate(text: str, max_chars: int) -> str:
    flattened = text.replace("\n", " ")
    if len(flattened) <= max_chars:
        return flattened
    return flattened[:max_chars] + "..."
