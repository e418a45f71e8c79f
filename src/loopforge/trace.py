"""Trace recorder for agent runs."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loopforge.callbacks import ALL_STEPS
from loopforge.steps import Step
from loopforge.util.logging import redact

if TYPE_CHECKING:
    from loopforge.agent import BaseAgent, RunResult


@dataclass
class TraceRecorder:
    trace_id: str
    workspace_dir: str
    started_at: float = field(default_factory=time.time)
    events: list[dict[str, Any]] = field(default_factory=list)

    def attach(self, agent: BaseAgent) -> None:
        """Record every step the agent reports through its callbacks."""
        agent.register_callback(ALL_STEPS, self.record_step)

    def record(self, event_type: str, payload: dict[str, Any]) -> None:
        self.events.append(
            {
                "type": event_type,
                "timestamp": time.time(),
                "payload": payload,
            }
        )

    def record_step(self, step: Step) -> None:
        payload = step.to_dict()
        for key in ("model_output", "observations", "plan", "error"):
            if isinstance(payload.get(key), str):
                payload[key] = redact(payload[key])
        self.record(step.step_type, payload)

    def finalize(self, result: RunResult) -> str:
        trace_dir = Path(self.workspace_dir) / "traces"
        trace_dir.mkdir(parents=True, exist_ok=True)
        trace_path = trace_dir / f"{self.trace_id}.json"
        summary = result.to_dict()
        payload = {
            "trace_id": self.trace_id,
            "started_at": self.started_at,
            "ended_at": time.time(),
            "state": summary["state"],
            "output": summary["output"],
            "token_usage": summary["token_usage"],
            "events": self.events,
        }
        trace_path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
        return str(trace_path)
