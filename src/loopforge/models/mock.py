"""Mock chat model for offline testing."""

from __future__ import annotations

import json

from loopforge.messages import Message, MessageRole, ToolCall
from loopforge.models.base import BaseChatModel, GenerateOptions

_MARKER = "USE_TOOL:"


class MockChatModel(BaseChatModel):
    """Deterministic mock model used when no API key is available.

    Scripted entries are returned in order; an exception entry is raised
    instead. Once the script runs out, a ``USE_TOOL: <name> <json>`` line in
    the last message becomes a tool call and anything else is echoed.
    """

    model_id = "mock"

    def __init__(self, scripted: list[Message | Exception] | None = None) -> None:
        self._scripted = list(scripted or [])
        self.calls: list[tuple[list[Message], GenerateOptions]] = []

    def generate(self, messages: list[Message], options: GenerateOptions | None = None) -> Message:
        options = options or GenerateOptions()
        self.calls.append((list(messages), options))
        if self._scripted:
            item = self._scripted.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        last = messages[-1].content if messages else ""
        for line in last.splitlines():
            if line.startswith(_MARKER):
                return self._tool_call_from_prompt(line, options)
        return Message(role=MessageRole.ASSISTANT, content=f"Mock response to: {last}")

    def _tool_call_from_prompt(self, prompt: str, options: GenerateOptions) -> Message:
        stripped = prompt[len(_MARKER) :].strip()
        if not stripped:
            return _reply(f"Mock response to: {prompt} (error: missing tool name)")
        parts = stripped.split(maxsplit=1)
        tool_name = parts[0]
        tool_args = parts[1] if len(parts) > 1 else "{}"
        if tool_name not in {tool.name for tool in options.tools}:
            return _reply(f"Mock response to: {prompt} (error: unknown tool)")
        try:
            arguments = json.loads(tool_args)
        except json.JSONDecodeError:
            return _reply(f"Mock response to: {prompt} (error: invalid JSON args)")
        if not isinstance(arguments, dict):
            return _reply(f"Mock response to: {prompt} (error: args must be object)")
        return Message(
            role=MessageRole.ASSISTANT,
            tool_calls=(ToolCall(name=tool_name, arguments=arguments),),
        )


def _reply(text: str) -> Message:
    return Message(role=MessageRole.ASSISTANT, content=text)
