"""Base model interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loopforge.messages import Message

if TYPE_CHECKING:
    from loopforge.tools.base import Tool


@dataclass
class GenerateOptions:
    stop_sequences: list[str] = field(default_factory=list)
    tools: list[Tool] = field(default_factory=list)
    temperature: float | None = None
    max_tokens: int | None = None


class BaseChatModel(ABC):
    """Abstract chat model interface."""

    model_id: str = "unknown"

    @abstractmethod
    def generate(self, messages: list[Message], options: GenerateOptions | None = None) -> Message:
        """Send messages and return the assistant message; raise on failure."""
        raise NotImplementedError
