"""
Abstract base for chat-completion providers.
The AI extractor calls providers only through this interface; from_config is where the concrete one is picked.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from core.interfaces import ILLMProvider


class BaseLLMProvider(ILLMProvider, ABC):
    """Abstract LLM provider. Implement chat()."""

    @abstractmethod
    def chat(self, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        """Chat completion. Returns content string."""
        ...
