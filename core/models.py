"""
Value objects for the receipt extraction core.
Uses dataclasses for DTOs; the Pydantic schema for LLM output lives in core.schema.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_CURRENCY = "RUB"
AI_VALID_CONFIDENCE = 0.85


@dataclass(frozen=True)
class DateCandidate:
    """A syntactically valid date found in the text, before context filtering."""

    normalized_date: str  # YYYY-MM-DD
    position: int
    time: str | None = None  # " HH:MM" or " HH:MM:SS"
    has_context_keyword: bool = False
    has_nearby_time: bool = False
    in_first_fifth: bool = False

    @property
    def has_time(self) -> bool:
        return bool(self.time)

    def formatted(self) -> str:
        return self.normalized_date + (self.time or "")


@dataclass(frozen=True)
class AmountCandidate:
    """Amount found after a priority keyword. Lower rank = more authoritative keyword."""

    value: float
    source_keyword: str
    keyword_priority_rank: int


@dataclass(frozen=True)
class ParseResult:
    """Outcome of the heuristic parser."""

    confidence: float
    raw_excerpt: str
    date: str | None = None
    amount: float | None = None
    bank_code: str | None = None
    currency: str = DEFAULT_CURRENCY

    def to_dict(self) -> dict[str, Any]:
        """External mapping; fields without a value are omitted. `sum` is a legacy alias of `amount`."""
        out: dict[str, Any] = {
            "date": self.date,
            "amount": self.amount,
            "sum": self.amount,
            "currency": self.currency,
            "bank_code": self.bank_code,
            "parsing_confidence": self.confidence,
            "raw_text": self.raw_excerpt,
        }
        return {k: v for k, v in out.items() if v is not None}


@dataclass(frozen=True)
class AIExtractionResult:
    """Outcome of the LLM fallback extractor."""

    amount: float | None = None
    date: str | None = None  # YYYY-MM-DD, time always dropped
    currency: str = DEFAULT_CURRENCY
    confidence: float = 0.0
    source: str = "ai"

    @classmethod
    def empty(cls) -> AIExtractionResult:
        return cls()

    def is_valid(self) -> bool:
        """High self-reported confidence alone is not enough; at least one field must survive."""
        return self.confidence >= AI_VALID_CONFIDENCE and (
            self.amount is not None or self.date is not None
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "amount": self.amount,
            "date": self.date,
            "sum": self.amount,
            "currency": self.currency,
            "parsing_confidence": self.confidence,
            "source": self.source,
        }


@dataclass(frozen=True)
class ProcessedReceipt:
    """Final result for one receipt text (single public output of the pipeline)."""

    name: str
    source: str  # "heuristic" | "ai"
    data: dict[str, Any]
    needs_review: bool = False
    trace_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "source": self.source,
            "needs_review": self.needs_review,
            "trace_id": self.trace_id,
            "result": dict(self.data),
        }


@dataclass
class BatchMetrics:
    """Metrics collected during batch processing."""

    total_processed: int = 0
    heuristic_count: int = 0
    ai_count: int = 0
    needs_review_count: int = 0
    failed_count: int = 0
    total_time_sec: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Export for logging/serialization."""
        return {
            "total_processed": self.total_processed,
            "heuristic_count": self.heuristic_count,
            "ai_count": self.ai_count,
            "needs_review_count": self.needs_review_count,
            "failed_count": self.failed_count,
            "total_time_sec": round(self.total_time_sec, 4),
        }
