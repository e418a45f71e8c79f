"""Local-process Python executor."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Any

from loopforge.errors import CodeExecutionError, ExecutionTimeoutError
from loopforge.executors.base import (
    CodeExecutor,
    ExecutionResult,
    build_wrapper,
    parse_execution_logs,
)
from loopforge.safety.sandbox import run_command
from loopforge.util.logging import get_logger

logger = get_logger(__name__)


class LocalPythonExecutor(CodeExecutor):
    """Run each snippet in a fresh interpreter subprocess.

    The program is fed on stdin so the size of the carried state is not bound
    by the command-line argument limit.
    """

    def __init__(
        self,
        python_path: str | None = None,
        timeout_seconds: float = 30,
        workspace_dir: str | None = None,
    ) -> None:
        self.python_path = python_path or sys.executable
        self.timeout_seconds = timeout_seconds
        self.workspace_dir = Path(workspace_dir).resolve() if workspace_dir else None
        if self.workspace_dir is not None:
            self.workspace_dir.mkdir(parents=True, exist_ok=True)

    def execute(self, code: str, state: dict[str, Any]) -> ExecutionResult:
        program = build_wrapper(code, state)
        try:
            completed = run_command(
                [self.python_path, "-"],
                cwd=self.workspace_dir,
                env=os.environ.copy(),
                timeout_seconds=self.timeout_seconds,
                input_text=program,
            )
        except subprocess.TimeoutExpired:
            logger.warning("Code execution timed out after %ss.", self.timeout_seconds)
            return ExecutionResult(
                error=ExecutionTimeoutError(f"execution timeout after {self.timeout_seconds}s")
            )
        except OSError as exc:
            return ExecutionResult(error=CodeExecutionError("failed to start interpreter", exc))

        result = parse_execution_logs(completed.stdout)
        state.update(result.state)
        if completed.exit_code != 0:
            result.error = CodeExecutionError(
                f"exit status {completed.exit_code}: {completed.stderr.strip()}"
            )
            result.output = None
            result.has_output = False
        return result
