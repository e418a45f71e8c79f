"""OpenAI-compatible chat model client."""

from __future__ import annotations

import json
import time
from typing import Any
from urllib.parse import urlparse, urlunparse

import httpx

from loopforge.messages import Message, MessageRole, TokenUsage, ToolCall
from loopforge.models.base import BaseChatModel, GenerateOptions


class OpenAICompatError(RuntimeError):
    """Raised when the OpenAI-compatible backend returns an error."""


class OpenAICompatChatModel(BaseChatModel):
    """HTTP client for OpenAI-compatible chat/completions."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout_seconds: int = 30,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        max_response_bytes: int = 2_000_000,
        max_attempts: int = 3,
        extra_headers: dict[str, str] | None = None,
        disable_tool_choice: bool = False,
        force_chatcompletions_path: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        normalized = base_url.strip()
        if not normalized.startswith(("http://", "https://")):
            normalized = f"http://{normalized}"
        self.base_url = normalized.rstrip("/")
        self.api_key = api_key
        self.model_id = model
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_response_bytes = max_response_bytes
        self.max_attempts = max(1, max_attempts)
        self.extra_headers = extra_headers or {}
        self.disable_tool_choice = disable_tool_choice
        self.force_chatcompletions_path = force_chatcompletions_path
        self.transport = transport

    def _request_payload(self, messages: list[Message], options: GenerateOptions) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model_id,
            "messages": [message.to_dict() for message in messages],
            "temperature": options.temperature if options.temperature is not None else self.temperature,
            "max_tokens": options.max_tokens if options.max_tokens is not None else self.max_tokens,
        }
        if options.stop_sequences:
            payload["stop"] = list(options.stop_sequences)
        if options.tools:
            payload["tools"] = [tool.openai_schema() for tool in options.tools]
            if not self.disable_tool_choice:
                payload["tool_choice"] = "auto"
        return payload

    def _build_url(self) -> str:
        parsed = urlparse(self.base_url)
        if self.force_chatcompletions_path:
            forced_path = self.force_chatcompletions_path
            if not forced_path.startswith("/"):
                forced_path = f"/{forced_path}"
            return urlunparse(parsed._replace(path=forced_path, params="", query="", fragment=""))
        path = parsed.path or ""
        if path in {"", "/"}:
            base_path = "/v1"
        else:
            base_path = path.rstrip("/")
            segments = [segment for segment in base_path.split("/") if segment]
            if "v1" not in segments:
                base_path = f"{base_path}/v1"
        if base_path.endswith("/chat/completions"):
            final_path = base_path
        else:
            final_path = f"{base_path}/chat/completions"
        return urlunparse(parsed._replace(path=final_path, params="", query="", fragment=""))

    def generate(self, messages: list[Message], options: GenerateOptions | None = None) -> Message:
        options = options or GenerateOptions()
        url = self._build_url()
        headers = {"Authorization": f"Bearer {self.api_key}", **self.extra_headers}
        payload = self._request_payload(messages, options)
        timeout = httpx.Timeout(self.timeout_seconds)

        last_error: Exception | None = None
        for attempt in range(self.max_attempts):
            try:
                with httpx.Client(timeout=timeout, transport=self.transport) as client:
                    response = client.post(url, headers=headers, json=payload)
                if response.status_code in {429} or response.status_code >= 500:
                    raise OpenAICompatError(
                        f"Retryable error {response.status_code}: {response.text[:200]}"
                    )
                response.raise_for_status()
                if len(response.content) > self.max_response_bytes:
                    raise OpenAICompatError("Response too large")
                try:
                    data = response.json()
                except json.JSONDecodeError as exc:
                    raise OpenAICompatError("Malformed JSON response") from exc
                return _parse_completion(data)
            except (httpx.HTTPError, OpenAICompatError) as exc:
                last_error = exc
                if attempt == self.max_attempts - 1:
                    break
                time.sleep(2**attempt)
        raise OpenAICompatError(f"OpenAI-compatible request failed: {last_error}")


def _parse_completion(data: dict[str, Any]) -> Message:
    choices = data.get("choices") or []
    if not choices:
        raise OpenAICompatError("No response choices returned")
    message = choices[0].get("message") or {}
    content = message.get("content")
    tool_calls = tuple(_parse_tool_call(raw) for raw in message.get("tool_calls") or [])
    usage = data.get("usage") or {}
    return Message(
        role=MessageRole.ASSISTANT,
        content=content if isinstance(content, str) else "",
        tool_calls=tool_calls,
        token_usage=TokenUsage(
            input_tokens=int(usage.get("prompt_tokens") or 0),
            output_tokens=int(usage.get("completion_tokens") or 0),
        ),
    )


def _parse_tool_call(raw: dict[str, Any]) -> ToolCall:
    function = raw.get("function") or {}
    raw_arguments = function.get("arguments") or "{}"
    if isinstance(raw_arguments, dict):
        arguments = raw_arguments
    else:
        try:
            arguments = json.loads(raw_arguments)
        except json.JSONDecodeError:
            arguments = {"raw": raw_arguments}
        if not isinstance(arguments, dict):
            arguments = {"raw": raw_arguments}
    fields: dict[str, Any] = {"name": function.get("name", ""), "arguments": arguments}
    if raw.get("id"):
        fields["id"] = raw["id"]
    return ToolCall(**fields)
