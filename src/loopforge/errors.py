"""Error taxonomy for agent runs."""

from __future__ import annotations


class AgentError(Exception):
    """Base error for everything raised or recorded by the run loop."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class GenerationError(AgentError):
    """The model call failed."""


class ParsingError(AgentError):
    """The model output could not be turned into an action."""


class ToolExecutionError(AgentError):
    """A tool or nested agent raised while executing."""

    def __init__(self, tool_name: str, cause: BaseException | None = None) -> None:
        super().__init__(f"tool '{tool_name}' execution failed", cause)
        self.tool_name = tool_name


class UnknownToolError(ToolExecutionError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name)
        self.message = f"unknown tool: {tool_name}"


class ExecutionTimeoutError(AgentError):
    """Code execution exceeded its deadline and was killed."""


class CodeExecutionError(AgentError):
    """Executed code exited with an error."""


class RunCancelled(AgentError):
    """Cancellation was requested between steps."""
