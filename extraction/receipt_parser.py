"""
Receipt parser: extract transaction date, paid amount and bank from OCR text of a
payment receipt, and score how much the result can be trusted.

Date: all candidates -> context filter -> earliest wins.
Amount: only numbers after priority keywords -> context guards -> keyword rank.
Bank: substring markers in fixed order.
Confidence: deterministic additive score with an ambiguity cap.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Sequence

from core.models import DEFAULT_CURRENCY, AmountCandidate, DateCandidate, ParseResult
from extraction.amount_context import (
    KEYWORD_WINDOW,
    is_acceptable_position,
    window_rejected,
)
from extraction.preprocessor import preprocess, preprocess_for_numbers

logger = logging.getLogger(__name__)

YEAR_MIN = 2018
MAX_INPUT_LENGTH = 20_000
RAW_EXCERPT_LENGTH = 500

# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

# (pattern, day group, month group, year group, hour, minute, second)
DATE_PATTERNS: Sequence[tuple[re.Pattern, int, int, int, int | None, int | None, int | None]] = (
    # 15.03.2024 14:30:05 / 15.03.2024 14:30
    (re.compile(r"(?<!\d)(\d{1,2})[./-](\d{1,2})[./-](\d{4})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?"), 1, 2, 3, 4, 5, 6),
    (re.compile(r"(?<!\d)(\d{1,2})[./-](\d{1,2})[./-](\d{4})\s+(\d{1,2}):(\d{2})"), 1, 2, 3, 4, 5, None),
    # 15.03.2024
    (re.compile(r"(?<!\d)(\d{1,2})[./-](\d{1,2})[./-](\d{4})(?!\d)"), 1, 2, 3, None, None, None),
    # 15.03.24 [14:30]
    (re.compile(r"(?<!\d)(\d{1,2})[./-](\d{1,2})[./-](\d{2})(?!\d)(?:\s+(\d{1,2}):(\d{2}))?"), 1, 2, 3, 4, 5, None),
    # 2024-03-15 14:30
    (re.compile(r"(?<!\d)(\d{4})[./-](\d{2})[./-](\d{2})\s+(\d{2}):(\d{2})"), 3, 2, 1, 4, 5, None),
)

DATE_CONTEXT_KEYWORDS: Sequence[str] = (
    "дата", "операции", "операци", "операция", "время", "чек", "date", "time",
)
DATE_CONTEXT_RADIUS = 80
FIRST_PART_RATIO = 0.2
CLOCK_TIME = re.compile(r"\d{1,2}:\d{2}")

RU_GENITIVE_MONTHS = {
    "января": 1, "февраля": 2, "марта": 3, "апреля": 4, "мая": 5, "июня": 6,
    "июля": 7, "августа": 8, "сентября": 9, "октября": 10, "ноября": 11, "декабря": 12,
}
# "15 марта 2024 в 14:30"
RU_MONTH_DATE = re.compile(
    r"(\d{1,2})\s+(" + "|".join(RU_GENITIVE_MONTHS) + r")\s+(\d{4})(?:\s+(?:в\s+)?(\d{1,2}):(\d{2}))?",
    re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

# Priority order: the first keyword is the most authoritative
AMOUNT_KEYWORDS: Sequence[str] = (
    "итого",
    "сумма",
    "всего",
    "оплачено",
    "списано",
    "к оплате",
    "исполнено",
    "сумма перевода",
    "сумма операции",
    "перевод на карту",
)

# 12 500.00 | 1.250,00 | 12500.00 ; never part of a longer digit run, a date or a clock time
AMOUNT_TOKEN = (
    r"(?<![\d./])(?<!\d[:-])("
    r"\d{1,3}(?:[ \u00a0\u202f]\d{3})*(?:[.,]\d{2})?"
    r"|\d{1,3}(?:\.\d{3})+(?:[.,]\d{2})?"
    r"|\d+(?:[.,]\d{2})?"
    r")(?![.,]?\d|[:/-]\d)"
)
AMOUNT_TOKEN_PATTERN = re.compile(AMOUNT_TOKEN)
KEYWORD_GAP = 60
KEYWORD_AMOUNT_PATTERNS: Sequence[tuple[str, re.Pattern]] = tuple(
    (kw, re.compile(re.escape(kw) + r"[^\d]{0," + str(KEYWORD_GAP) + r"}" + AMOUNT_TOKEN, re.IGNORECASE))
    for kw in AMOUNT_KEYWORDS
)

AMOUNT_MIN, AMOUNT_MAX = 1.0, 10_000_000.0
AMOUNT_MAX_CHARS = 10
_WHITESPACE = re.compile(r"\s+")
_ALL_BUT_LAST_DOT = re.compile(r"\.(?=.*\.)")
_DECIMAL_NUMBER = re.compile(r"\d+(?:\.\d+)?")

# ---------------------------------------------------------------------------
# Banks (detection order matters)
# ---------------------------------------------------------------------------

BANK_MARKERS: Sequence[tuple[str, Sequence[str]]] = (
    ("sber", ("сбербанк", "сбер", "sberbank", "sber")),
    ("tinkoff", ("тинькофф", "тинькоф", "т-банк", "tinkoff", "t-bank", "tbank")),
    ("alfabank", ("альфа-банк", "альфа банк", "альфабанк", "alfa-bank", "alfabank", "alfa bank")),
)


def normalize_amount(num_str: str) -> float | None:
    """
    "12 500,00" -> 12500.0. Dots except the last are thousands separators.
    Returns None for non-numbers, values outside [1, 10 000 000] and OCR run-ons
    (more than ten characters once separators are normalized, the decimal point included).
    """
    s = _WHITESPACE.sub("", num_str).replace(",", ".")
    s = _ALL_BUT_LAST_DOT.sub("", s)
    if not _DECIMAL_NUMBER.fullmatch(s):
        return None
    if len(s) > AMOUNT_MAX_CHARS:
        return None
    value = float(s)
    if value < AMOUNT_MIN or value > AMOUNT_MAX:
        return None
    return round(value, 2)


def calculate_confidence(
    date: str | None,
    amount: float | None,
    amount_found_by_keyword: bool,
    date_candidates_count: int,
) -> float:
    """
    +0.4 date, +0.4 amount by keyword (+0.2 without), +0.2 both with a single date candidate.
    Several date candidates cap a high score at 0.65.
    """
    score = 0.0
    if date is not None:
        score += 0.4
    if amount is not None and amount_found_by_keyword:
        score += 0.4
    elif amount is not None:
        score += 0.2
    if date is not None and amount is not None and date_candidates_count <= 1:
        score += 0.2

    confidence = min(1.0, round(score, 2))
    if date_candidates_count > 1 and confidence >= 0.7:
        confidence = 0.65
    return confidence


class ReceiptParser:
    """
    Heuristic parser for one receipt text. Holds only the normalized text;
    per-parse counters are returned from the extract methods, so parse() is repeatable.
    """

    def __init__(self, text: str) -> None:
        raw = (text or "")[:MAX_INPUT_LENGTH]
        self._text = preprocess_for_numbers(raw)
        self._text_lower = self._text.lower()
        self._folded = preprocess(raw)

    @property
    def text(self) -> str:
        return self._text

    def parse(self) -> ParseResult:
        date, date_candidates_count = self.extract_date()
        amount, found_by_keyword = self.extract_amount()
        bank_code = self.extract_bank()
        confidence = calculate_confidence(date, amount, found_by_keyword, date_candidates_count)
        logger.debug(
            "Receipt parsed: date=%s amount=%s bank=%s confidence=%.2f date_candidates=%s",
            date, amount, bank_code, confidence, date_candidates_count,
        )
        return ParseResult(
            date=date,
            amount=amount,
            currency=DEFAULT_CURRENCY,
            bank_code=bank_code,
            confidence=confidence,
            raw_excerpt=self._text[:RAW_EXCERPT_LENGTH],
        )

    # -- date ---------------------------------------------------------------

    def extract_date(self) -> tuple[str | None, int]:
        """Returns (date with optional time suffix, number of distinct candidates before filtering)."""
        candidates = self.find_date_candidates()
        if not candidates:
            return self._russian_month_date(), 0

        valid = [c for c in candidates if c.in_first_fifth or c.has_context_keyword or c.has_nearby_time]
        if not valid:
            valid = candidates

        # Earliest in text, then with time, then near a date keyword
        valid.sort(key=lambda c: (c.position, not c.has_time, not c.has_context_keyword))
        return valid[0].formatted(), len(candidates)

    def find_date_candidates(self) -> list[DateCandidate]:
        candidates: list[DateCandidate] = []
        seen: set[tuple[int, int, int]] = set()
        current_year = datetime.now().year
        text_length = len(self._text)

        for pattern, g_day, g_month, g_year, g_hour, g_minute, g_second in DATE_PATTERNS:
            for m in pattern.finditer(self._text):
                day, month, year = int(m.group(g_day)), int(m.group(g_month)), int(m.group(g_year))
                if len(m.group(g_year)) == 2:
                    year += 2000
                if not (1 <= day <= 31 and 1 <= month <= 12 and YEAR_MIN <= year <= current_year):
                    continue
                key = (day, month, year)
                if key in seen:
                    continue
                seen.add(key)

                time = None
                if g_hour is not None and m.group(g_hour) is not None:
                    time = " %02d:%02d" % (int(m.group(g_hour)), int(m.group(g_minute)))
                    if g_second is not None and m.group(g_second) is not None:
                        time += ":%02d" % int(m.group(g_second))

                pos = m.start()
                snippet = self._text_lower[max(0, pos - DATE_CONTEXT_RADIUS) : pos + DATE_CONTEXT_RADIUS]
                candidates.append(
                    DateCandidate(
                        normalized_date="%04d-%02d-%02d" % (year, month, day),
                        position=pos,
                        time=time,
                        has_context_keyword=any(kw in snippet for kw in DATE_CONTEXT_KEYWORDS),
                        has_nearby_time=bool(CLOCK_TIME.search(snippet)),
                        in_first_fifth=pos < text_length * FIRST_PART_RATIO,
                    )
                )
        return candidates

    def _russian_month_date(self) -> str | None:
        """Fallback for "15 марта 2024 в 14:30" when no numeric date exists."""
        m = RU_MONTH_DATE.search(self._text)
        if not m:
            return None
        day, year = int(m.group(1)), int(m.group(3))
        if not (1 <= day <= 31 and YEAR_MIN <= year <= datetime.now().year):
            return None
        month = RU_GENITIVE_MONTHS[m.group(2).lower()]
        date = "%04d-%02d-%02d" % (year, month, day)
        if m.group(4) is not None:
            date += " %02d:%02d" % (int(m.group(4)), int(m.group(5)))
        return date

    # -- amount -------------------------------------------------------------

    def extract_amount(self) -> tuple[float | None, bool]:
        """Returns (best amount, whether it was found by keyword)."""
        candidates = self.find_amount_candidates()
        if not candidates:
            return None, False
        # Most authoritative keyword; same rank -> larger value ("итого 500 (сбор 10)")
        best = min(candidates, key=lambda c: (c.keyword_priority_rank, -c.value))
        return best.value, True

    def find_amount_candidates(self) -> list[AmountCandidate]:
        """Both passes feed one pool; overlaps are expected and resolved by ranking."""
        return self._keyword_proximity_candidates() + self._keyword_line_candidates()

    def _keyword_proximity_candidates(self) -> list[AmountCandidate]:
        """Pass A: keyword, up to 60 non-digits, number, matched on whitespace-collapsed text."""
        one_line = _WHITESPACE.sub(" ", self._text)
        found: list[AmountCandidate] = []
        for rank, (kw, pattern) in enumerate(KEYWORD_AMOUNT_PATTERNS):
            for m in pattern.finditer(one_line):
                window = one_line[m.start() : m.start() + KEYWORD_WINDOW]
                if window_rejected(window, kw):
                    continue
                num_str, num_pos = m.group(1), m.start(1)
                if not is_acceptable_position(one_line, num_pos, num_str):
                    continue
                value = normalize_amount(num_str)
                if value is not None:
                    found.append(AmountCandidate(value=value, source_keyword=kw, keyword_priority_rank=rank))
        return found

    def _keyword_line_candidates(self) -> list[AmountCandidate]:
        """
        Pass B: first usable number on a physical line that contains a keyword.
        Numbers after the keyword come first ("Итого 100 р, чек 1234567");
        a number before it only counts when nothing follows ("1 000 ₽ итого").
        """
        found: list[AmountCandidate] = []
        for line in self._text.split("\n"):
            lower = line.lower()
            rank, kw = next(((i, k) for i, k in enumerate(AMOUNT_KEYWORDS) if k in lower), (-1, ""))
            if rank < 0 or window_rejected(lower, kw):
                continue
            kw_end = lower.index(kw) + len(kw)
            after: list[float] = []
            before: list[float] = []
            for m in AMOUNT_TOKEN_PATTERN.finditer(line):
                num_str, num_pos = m.group(1), m.start(1)
                if not is_acceptable_position(line, num_pos, num_str):
                    continue
                value = normalize_amount(num_str)
                if value is not None:
                    (after if num_pos >= kw_end else before).append(value)
            first = after[0] if after else (before[0] if before else None)
            if first is not None:
                found.append(AmountCandidate(value=first, source_keyword=kw, keyword_priority_rank=rank))
        return found

    # -- bank ---------------------------------------------------------------

    def extract_bank(self) -> str | None:
        for code, markers in BANK_MARKERS:
            if any(marker in self._folded for marker in markers):
                return code
        return None


def parse_receipt(text: str) -> dict[str, Any]:
    """Parse OCR text of a payment receipt into the external result mapping."""
    return ReceiptParser(text).parse().to_dict()
