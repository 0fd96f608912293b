"""OpenAI (and OpenAI-compatible) chat-completions HTTP provider."""

from __future__ import annotations

import logging
from typing import Any

import requests

from providers.base import BaseLLMProvider

logger = logging.getLogger(__name__)
DEFAULT_OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"


class OpenAIProvider(BaseLLMProvider):
    """
    Single POST to a full chat-completions endpoint with a bearer token.
    No retry: transport errors and non-2xx statuses propagate as requests exceptions.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_OPENAI_CHAT_URL,
        api_key: str = "",
        model: str = "gpt-4o-mini",
        timeout_sec: float = 15,
    ) -> None:
        self._api_url = (api_url or "").strip()
        self._api_key = api_key or ""
        self._model = model
        self._timeout = timeout_sec

    def _headers(self) -> dict[str, str]:
        h: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            h["Authorization"] = f"Bearer {self._api_key}"
        return h

    def chat(self, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        payload: dict[str, Any] = {
            "model": kwargs.get("model") or self._model,
            "messages": messages,
            "max_tokens": kwargs.get("max_tokens", 256),
        }
        if kwargs.get("temperature") is not None:
            payload["temperature"] = kwargs["temperature"]
        logger.debug("Chat completion request: model=%s messages=%s", payload["model"], len(messages))
        resp = requests.post(
            self._api_url, json=payload, headers=self._headers(), timeout=self._timeout
        )
        resp.raise_for_status()
        data = resp.json()
        choices = data.get("choices") if isinstance(data, dict) else None
        choice = choices[0] if isinstance(choices, list) and choices else {}
        content = (choice.get("message") or {}).get("content") if isinstance(choice, dict) else None
        return (content or "").strip() if isinstance(content, str) else ""
