"""Webpage fetch tool."""

from __future__ import annotations

import re
from typing import Any

import httpx
from pydantic import BaseModel, Field

from loopforge.tools.base import Tool, ToolInput

_TAG_RE = re.compile(r"<[^>]*>")
_USER_AGENT = "Mozilla/5.0 (compatible; loopforge/0.1)"


class VisitWebpageInput(BaseModel):
    url: str = Field(min_length=1)


class VisitWebpageTool(Tool):
    name = "visit_webpage"
    description = "Fetches content from a URL."
    inputs = {"url": ToolInput(type="string", description="URL to visit", required=True)}
    output_type = "string"

    def __init__(
        self,
        max_length: int = 50_000,
        timeout_seconds: int = 30,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.max_length = max_length if max_length > 0 else 50_000
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    def execute(self, arguments: dict[str, Any]) -> Any:
        payload = VisitWebpageInput.model_validate(arguments)
        url = payload.url
        if not url.startswith(("http://", "https://")):
            url = f"https://{url}"
        with httpx.Client(timeout=self.timeout_seconds, transport=self.transport) as client:
            response = client.get(url, headers={"User-Agent": _USER_AGENT})
        if response.status_code != 200:
            raise ValueError(f"HTTP {response.status_code}: {response.reason_phrase}")
        content = strip_html(response.content[: self.max_length].decode("utf-8", errors="ignore"))
        if len(response.content) > self.max_length:
            content += "... (truncated)"
        return content


def strip_html(text: str) -> str:
    """Drop tags and collapse whitespace."""
    return " ".join(_TAG_RE.sub(" ", text).split())
