"""LLM providers: abstract base and the OpenAI-compatible HTTP implementation."""

from providers.base import BaseLLMProvider
from providers.openai_provider import OpenAIProvider, DEFAULT_OPENAI_CHAT_URL

__all__ = [
    "BaseLLMProvider",
    "OpenAIProvider",
    "DEFAULT_OPENAI_CHAT_URL",
]
