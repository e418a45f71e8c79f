"""Step callback registry."""

from __future__ import annotations

from typing import Callable

from loopforge.steps import Step

ALL_STEPS = "all"

StepCallback = Callable[[Step], None]


class CallbackRegistry:
    def __init__(self) -> None:
        self._callbacks: dict[str, list[StepCallback]] = {}

    def register(self, step_type: str, callback: StepCallback) -> None:
        self._callbacks.setdefault(step_type, []).append(callback)

    def trigger(self, step: Step) -> None:
        """Run callbacks for the step's type, then the catch-all ones."""
        for callback in self._callbacks.get(step.step_type, []):
            callback(step)
        for callback in self._callbacks.get(ALL_STEPS, []):
            callback(step)
