"""Core agent loop."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from loopforge.callbacks import CallbackRegistry, StepCallback
from loopforge.errors import (
    GenerationError,
    ParsingError,
    RunCancelled,
    ToolExecutionError,
)
from loopforge.executors.base import CodeExecutor
from loopforge.memory import AgentMemory
from loopforge.messages import Message, MessageRole, Timing, TokenUsage
from loopforge.models.base import BaseChatModel, GenerateOptions
from loopforge.prompts import (
    CODE_AGENT_SYSTEM_PROMPT,
    PLANNING_PROMPT,
    TOOL_CALLING_SYSTEM_PROMPT,
    extra_args_note,
)
from loopforge.steps import ActionStep, FinalAnswerStep, PlanningStep, Step, TaskStep, jsonable
from loopforge.tools.base import Tool
from loopforge.tools.builtins.final_answer import FINAL_ANSWER_TOOL, FinalAnswerTool
from loopforge.tools.dispatch import ToolDispatcher
from loopforge.tools.registry import ToolRegistry, render_code_prompt
from loopforge.util.code_parse import calls_final_answer, parse_code_block
from loopforge.util.logging import get_logger, redact


logger = get_logger(__name__)

CODE_STOP_SEQUENCES = ["Observation:", "</code>"]


class RunState(str, Enum):
    SUCCESS = "success"
    MAX_STEPS_EXCEEDED = "max_steps_exceeded"


@dataclass(frozen=True)
class RunResult:
    output: Any
    state: RunState
    steps: list[Step]
    token_usage: TokenUsage
    timing: Timing

    def to_dict(self) -> dict[str, Any]:
        return {
            "output": jsonable(self.output),
            "state": self.state.value,
            "steps": [step.to_dict() for step in self.steps],
            "token_usage": self.token_usage.to_dict(),
            "timing": self.timing.to_dict(),
        }


class BaseAgent(ABC):
    """Step-indexed run loop shared by the tool-calling and code agents.

    A run appends a task step, then asks the model for one action per step
    until an action is final or the step budget runs out. Per-step failures
    are recorded on the step and the loop moves on; only cancellation aborts
    a run. One run at a time per instance: ``run`` holds a lock throughout.
    """

    def __init__(
        self,
        model: BaseChatModel,
        *,
        name: str = "agent",
        description: str = "",
        tools: Iterable[Tool] | None = None,
        managed_agents: Iterable[BaseAgent] | None = None,
        max_steps: int = 20,
        system_prompt: str | None = None,
        planning_interval: int | None = None,
    ) -> None:
        self.model = model
        self.name = name
        self.description = description
        self.max_steps = max_steps
        self.planning_interval = planning_interval
        self.registry = ToolRegistry()
        self.registry.register(FinalAnswerTool())
        self.registry.register_all(tools or [])
        self.dispatcher = ToolDispatcher(
            self.registry, {agent.name: agent for agent in managed_agents or []}
        )
        self.callbacks = CallbackRegistry()
        self.system_prompt = system_prompt or self._default_system_prompt()
        self.memory = AgentMemory(system_prompt=self.system_prompt)
        self._lock = threading.Lock()

    @abstractmethod
    def _default_system_prompt(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def _generate_options(self) -> GenerateOptions:
        raise NotImplementedError

    @abstractmethod
    def _process_response(self, step: ActionStep, response: Message) -> Any:
        """Act on a model response; return the run output when ``step`` becomes final."""
        raise NotImplementedError

    def _reset_state(self) -> None:
        """Clear variant-specific run state alongside memory."""

    def _apply_extra_args(self, extra_args: dict[str, Any]) -> None:
        """Expose caller-provided arguments to the actions of this run."""

    def register_callback(self, step_type: str, callback: StepCallback) -> None:
        self.callbacks.register(step_type, callback)

    def run(
        self,
        task: str,
        *,
        max_steps: int | None = None,
        reset: bool = True,
        images: list[bytes] | None = None,
        extra_args: dict[str, Any] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> RunResult:
        """Run ``task`` to a final answer or until the step budget is spent.

        Raises :class:`RunCancelled` when ``cancel_event`` is set at a step
        boundary. Everything else ends up on the returned steps.
        """
        budget = self.max_steps if max_steps is None else max_steps
        with self._lock:
            return self._run(task, budget, reset, images, extra_args, cancel_event)

    def _run(
        self,
        task: str,
        max_steps: int,
        reset: bool,
        images: list[bytes] | None,
        extra_args: dict[str, Any] | None,
        cancel_event: threading.Event | None,
    ) -> RunResult:
        start_time = time.time()
        logger.info("Agent %s run started (max_steps=%s, reset=%s).", self.name, max_steps, reset)
        logger.info("Task: %s", redact(task))
        if reset:
            self.memory.reset()
            self._reset_state()
        if extra_args:
            task += extra_args_note(extra_args)
            self._apply_extra_args(extra_args)
        self.memory.add_step(TaskStep(task=task, images=list(images or [])))

        final_output: Any = None
        completed = False
        for step_number in range(1, max_steps + 1):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("Agent %s cancelled before step %s.", self.name, step_number)
                raise RunCancelled(f"run cancelled before step {step_number}")
            if self.planning_interval and (step_number - 1) % self.planning_interval == 0:
                self._plan(step_number)
            step, output = self._run_step(step_number)
            if step.is_final:
                final_output = output
                completed = True
                self.memory.add_step(FinalAnswerStep(output=final_output))
                break

        state = RunState.SUCCESS if completed else RunState.MAX_STEPS_EXCEEDED
        token_usage = self.memory.total_tokens()
        logger.info(
            "Agent %s finished with state=%s after %s action steps (tokens=%s).",
            self.name,
            state.value,
            len(self.memory.action_steps()),
            token_usage.total,
        )
        return RunResult(
            output=final_output,
            state=state,
            steps=list(self.memory.steps),
            token_usage=token_usage,
            timing=Timing.since(start_time),
        )

    def _run_step(self, step_number: int) -> tuple[ActionStep, Any]:
        start_time = time.time()
        step = ActionStep(step_number=step_number, timing=Timing.since(start_time))
        output: Any = None
        try:
            response = self.model.generate(self.memory.to_messages(), self._generate_options())
        except Exception as exc:  # noqa: BLE001
            logger.warning("Model generation failed at step %s: %s", step_number, exc)
            step.error = GenerationError("model generation failed", exc)
        else:
            step.model_output = response.content
            step.token_usage = response.token_usage
            output = self._process_response(step, response)
        step.timing = Timing.since(start_time)
        self.memory.add_step(step)
        self.callbacks.trigger(step)
        return step, output

    def _plan(self, step_number: int) -> None:
        start_time = time.time()
        messages = self.memory.to_messages()
        messages.append(Message(role=MessageRole.USER, content=PLANNING_PROMPT))
        try:
            response = self.model.generate(messages, GenerateOptions())
        except Exception as exc:  # noqa: BLE001
            logger.warning("Planning failed before step %s: %s", step_number, exc)
            return
        step = PlanningStep(
            plan=response.content,
            timing=Timing.since(start_time),
            token_usage=response.token_usage,
        )
        self.memory.add_step(step)
        self.callbacks.trigger(step)


class ToolCallingAgent(BaseAgent):
    """Agent whose actions are structured tool calls."""

    def _default_system_prompt(self) -> str:
        return TOOL_CALLING_SYSTEM_PROMPT.format(tools=render_code_prompt(self.dispatcher.all_tools()))

    def _generate_options(self) -> GenerateOptions:
        return GenerateOptions(tools=self.dispatcher.all_tools())

    def _process_response(self, step: ActionStep, response: Message) -> Any:
        if not response.tool_calls:
            return None
        step.tool_calls = list(response.tool_calls)
        observations: list[str] = []
        output: Any = None
        for tool_call in response.tool_calls:
            try:
                result = self.dispatcher.dispatch(tool_call)
            except ToolExecutionError as exc:
                logger.warning("Tool %s failed: %s", tool_call.name, exc)
                detail = exc.cause if exc.cause is not None else exc
                observations.append(f"Error executing {tool_call.name}: {detail}")
                continue
            observations.append(str(result))
            if tool_call.name == FINAL_ANSWER_TOOL:
                step.is_final = True
                output = result
        step.observations = "\n".join(observations)
        return output


class CodeAgent(BaseAgent):
    """Agent whose actions are Python snippets run by a code executor.

    Variables survive between steps through ``state``, which is cleared when
    a run resets memory.
    """

    def __init__(
        self,
        model: BaseChatModel,
        executor: CodeExecutor,
        *,
        name: str = "agent",
        description: str = "",
        max_steps: int = 20,
        system_prompt: str | None = None,
        planning_interval: int | None = None,
    ) -> None:
        self.executor = executor
        self.state: dict[str, Any] = {}
        super().__init__(
            model,
            name=name,
            description=description,
            max_steps=max_steps,
            system_prompt=system_prompt,
            planning_interval=planning_interval,
        )

    def _default_system_prompt(self) -> str:
        return CODE_AGENT_SYSTEM_PROMPT.format(tools=self.registry.to_code_prompt())

    def _generate_options(self) -> GenerateOptions:
        return GenerateOptions(stop_sequences=list(CODE_STOP_SEQUENCES))

    def _reset_state(self) -> None:
        self.state = {}

    def _apply_extra_args(self, extra_args: dict[str, Any]) -> None:
        self.state.update(extra_args)

    def _process_response(self, step: ActionStep, response: Message) -> Any:
        code = parse_code_block(response.content)
        if code is None:
            step.error = ParsingError("no code block found")
            return None
        step.code_action = code
        result = self.executor.execute(code, self.state)
        step.observations = result.logs
        if result.error is not None:
            logger.warning("Code execution failed at step %s: %s", step.step_number, result.error)
            step.error = result.error
            return None
        if calls_final_answer(code):
            step.is_final = True
            return result.output
        return None
