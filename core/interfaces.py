"""
Abstract interfaces for the receipt extraction core.
Every external dependency is behind an interface; the extractor does not depend on a concrete LLM client.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Protocol

from core.models import AIExtractionResult, ParseResult


class ILLMProvider(ABC):
    """Abstract chat-completion provider used by the AI fallback extractor."""

    @abstractmethod
    def chat(self, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        """Chat completion; returns the first choice's content string. Raises on transport errors."""
        ...


class IAIExtractor(ABC):
    """Abstract secondary extractor: raw receipt text + hints -> AIExtractionResult. Never raises."""

    @abstractmethod
    def is_configured(self) -> bool:
        """True when endpoint and key are provisioned; callers check this before extract()."""
        ...

    @abstractmethod
    def extract(self, raw_text: str, context: dict[str, Any] | None = None) -> AIExtractionResult:
        """
        Extract amount/date from raw text.
        context: bank_hint, previous_amount, previous_date (accepted, not used in the prompt).
        """
        ...


class IFallbackStrategy(Protocol):
    """Strategy: decide whether a heuristic result should go to the AI extractor."""

    def should_fallback(self, result: ParseResult, threshold: float) -> bool:
        """True if the AI path should be tried."""
        ...

    def get_fallback_source(self) -> str:
        """Label for the result source when the AI result was used."""
        ...
