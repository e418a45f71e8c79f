"""Chat messages, tool calls, and accounting types."""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCall(BaseModel):
    id: str = Field(default_factory=lambda: f"call_{uuid4().hex[:12]}")
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total(self) -> int:
        return self.input_tokens + self.output_tokens

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total,
        }


@dataclass(frozen=True)
class Timing:
    start_time: float
    end_time: float
    duration: float

    @classmethod
    def since(cls, start_time: float) -> Timing:
        """Close a timing window opened at ``start_time``."""
        end_time = time.time()
        return cls(start_time=start_time, end_time=end_time, duration=end_time - start_time)

    def to_dict(self) -> dict[str, float]:
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class Message:
    """One role-tagged message as handed to a chat model."""

    role: MessageRole
    content: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    token_usage: TokenUsage | None = None
    images: tuple[bytes, ...] = field(default=(), repr=False)

    def to_dict(self) -> dict[str, Any]:
        """Return the chat-completions payload form of this message.

        Tool-role messages are sent as user messages and images become
        ``image_url`` parts with base64 data URLs.
        """
        role = MessageRole.USER if self.role == MessageRole.TOOL else self.role
        if not self.images:
            return {"role": role.value, "content": self.content}
        parts: list[dict[str, Any]] = [{"type": "text", "text": self.content}]
        for image in self.images:
            encoded = base64.b64encode(image).decode("ascii")
            parts.append(
                {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{encoded}"}}
            )
        return {"role": role.value, "content": parts}
