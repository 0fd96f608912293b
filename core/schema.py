"""
Pydantic schema for the JSON object returned by the receipt LLM.
Coerces loosely-typed model output; range validation happens in the extractor.
"""
from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, field_validator

from core.models import DEFAULT_CURRENCY

# Date-only or datetime strings the model is allowed to return; time is discarded.
DATE_FORMATS = [
    "%Y-%m-%d", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y/%m/%d",
    "%d.%m.%Y", "%d.%m.%Y %H:%M:%S", "%d.%m.%Y %H:%M", "%d/%m/%Y",
]


def parse_calendar_date(value: Any) -> date | None:
    """Parse an LLM-supplied date (ISO date/datetime or DD.MM.YYYY) to a date. None if unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def _coerce_amount(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        amount = float(value)
    else:
        s = re.sub(r"\s+", "", str(value)).replace(",", ".")
        try:
            amount = float(s) if s else None
        except ValueError:
            return None
    return amount if amount is not None and math.isfinite(amount) else None


class AIReceiptPayload(BaseModel):
    """Fields the receipt LLM is asked to return."""

    amount: float | None = None
    date: str | None = None
    currency: str = DEFAULT_CURRENCY
    confidence: float = 0.0

    @field_validator("amount", mode="before")
    @classmethod
    def amount_two_decimals(cls, v: Any) -> float | None:
        amount = _coerce_amount(v)
        return round(amount, 2) if amount is not None else None

    @field_validator("date", mode="before")
    @classmethod
    def date_only(cls, v: Any) -> str | None:
        if v is None or v == "":
            return None
        if not isinstance(v, str):
            return None
        parsed = parse_calendar_date(v)
        # Unparseable strings are kept so the extractor can reject them explicitly
        return parsed.isoformat() if parsed else v.strip()

    @field_validator("currency", mode="before")
    @classmethod
    def currency_default(cls, v: Any) -> str:
        s = str(v).strip() if v is not None else ""
        return s or DEFAULT_CURRENCY

    @field_validator("confidence", mode="before")
    @classmethod
    def confidence_clamped(cls, v: Any) -> float:
        try:
            c = float(v) if v is not None and not isinstance(v, bool) else 0.0
        except (TypeError, ValueError):
            return 0.0
        if c != c:  # NaN
            return 0.0
        return max(0.0, min(1.0, c))
