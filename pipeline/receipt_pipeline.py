"""
Receipt pipeline: single public method process(text) -> ProcessedReceipt.
Does not know which LLM is used; the AI extractor is injected via constructor.
Flow: heuristic parse -> fallback check -> AI extraction (enabled + configured) -> pick result.
"""

from __future__ import annotations

import logging
import uuid

from core.interfaces import IAIExtractor, IFallbackStrategy
from core.models import ParseResult, ProcessedReceipt
from extraction.receipt_parser import ReceiptParser
from pipeline.fallback import ConfidenceFallbackStrategy

logger = logging.getLogger(__name__)

HEURISTIC_SOURCE = "heuristic"


def _hints(result: ParseResult) -> dict[str, object]:
    """Context passed to the AI extractor from what the heuristic pass already found."""
    return {
        "previous_amount": result.amount,
        "previous_date": result.date,
        "bank_hint": result.bank_code,
    }


class ReceiptPipeline:
    """Heuristic parser first; AI extractor only when the fallback strategy asks for it."""

    def __init__(
        self,
        ai_extractor: IAIExtractor | None = None,
        *,
        fallback_threshold: float = 0.9,
        ai_enabled: bool = False,
        fallback_strategy: IFallbackStrategy | None = None,
    ) -> None:
        self._ai = ai_extractor
        self._fallback_threshold = fallback_threshold
        self._ai_enabled = ai_enabled
        self._fallback = fallback_strategy or ConfidenceFallbackStrategy()

    def _ai_available(self) -> bool:
        return self._ai_enabled and self._ai is not None and self._ai.is_configured()

    def process(self, text: str, name: str = "") -> ProcessedReceipt:
        trace_id = str(uuid.uuid4())
        parsed = ReceiptParser(text).parse()
        if not self._fallback.should_fallback(parsed, self._fallback_threshold):
            logger.info(
                "Heuristic result accepted: name=%s confidence=%.2f trace_id=%s",
                name, parsed.confidence, trace_id,
            )
            return ProcessedReceipt(
                name=name, source=HEURISTIC_SOURCE, data=parsed.to_dict(), trace_id=trace_id
            )

        if self._ai_available():
            logger.info(
                "Heuristic confidence %.2f < threshold %.2f or fields missing; trying AI extractor",
                parsed.confidence, self._fallback_threshold,
            )
            ai_result = self._ai.extract(text, context=_hints(parsed))
            if ai_result.is_valid():
                return ProcessedReceipt(
                    name=name,
                    source=self._fallback.get_fallback_source(),
                    data=ai_result.to_dict(),
                    trace_id=trace_id,
                )
            logger.info("AI result not valid (confidence=%.2f); keeping heuristic result", ai_result.confidence)
        else:
            logger.debug("AI extractor disabled or not configured; keeping heuristic result")

        return ProcessedReceipt(
            name=name,
            source=HEURISTIC_SOURCE,
            data=parsed.to_dict(),
            needs_review=True,
            trace_id=trace_id,
        )
