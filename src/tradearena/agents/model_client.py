from __future__ import annotations

import json
from typing import Any, Protocol
from urllib import request as urllib_request

from tradearena.agents.prompt import SYSTEM_PROMPT


class ModelCallError(RuntimeError):
    """The model endpoint answered, but without usable content."""


class ModelClient(Protocol):
    def decide(self, prompt: str, model_id: str) -> str: ...


class ChatTransport(Protocol):
    def post_json(
        self,
        url: str,
        headers: dict[str, str],
        payload: dict[str, object],
        timeout_seconds: float,
    ) -> dict[str, Any]: ...


class UrllibChatTransport:
    def post_json(
        self,
        url: str,
        headers: dict[str, str],
        payload: dict[str, object],
        timeout_seconds: float,
    ) -> dict[str, Any]:
        merged_headers = dict(headers)
        merged_headers["Content-Type"] = "application/json"
        req = urllib_request.Request(
            url=url,
            method="POST",
            data=json.dumps(payload).encode("utf-8"),
            headers=merged_headers,
        )
        with urllib_request.urlopen(req, timeout=timeout_seconds) as resp:
            content = resp.read().decode("utf-8")
        loaded = json.loads(content)
        if not isinstance(loaded, dict):
            raise ModelCallError("Chat completion response must be a JSON object")
        return loaded


class OpenRouterClient:
    """Chat-completion client for OpenRouter-compatible endpoints."""

    def __init__(
        self,
        api_key: str,
        endpoint: str = "https://openrouter.ai/api/v1",
        timeout_seconds: float = 30.0,
        temperature: float = 0.7,
        max_tokens: int = 500,
        system_prompt: str = SYSTEM_PROMPT,
        transport: ChatTransport | None = None,
    ) -> None:
        if not api_key.strip():
            raise ValueError("api_key must be non-empty")
        if not endpoint.strip():
            raise ValueError("endpoint must be non-empty")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than zero")

        self.api_key = api_key
        self.endpoint = endpoint.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt
        self.transport: ChatTransport = transport or UrllibChatTransport()

    def decide(self, prompt: str, model_id: str) -> str:
        response = self.transport.post_json(
            url=f"{self.endpoint}/chat/completions",
            headers=self._headers(),
            payload={
                "model": model_id,
                "messages": [
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": prompt},
                ],
                "temperature": self.temperature,
                "max_tokens": self.max_tokens,
            },
            timeout_seconds=self.timeout_seconds,
        )
        return _message_content(response)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": "https://github.com/tradearena/tradearena",
            "X-Title": "AI Trading Simulation",
        }


def _message_content(response: dict[str, Any]) -> str:
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ModelCallError("Chat completion response has no message content") from exc
    if not isinstance(content, str) or not content.strip():
        raise ModelCallError("Chat completion returned empty content")
    return content
