"""Fallback strategy: when the heuristic result is incomplete or below threshold, try the AI extractor."""

from __future__ import annotations

from core.models import ParseResult


class ConfidenceFallbackStrategy:
    """Configurable: should_fallback(result, threshold) and fallback source label."""

    def __init__(self, source_label: str = "ai") -> None:
        self._source_label = source_label

    def should_fallback(self, result: ParseResult, threshold: float) -> bool:
        if result.amount is None or result.date is None:
            return True
        return result.confidence < threshold

    def get_fallback_source(self) -> str:
        return self._source_label
