"""
Numeric context guards: prevent commissions, balances, card/account numbers and
identifiers from being accepted as the receipt amount. A number found after an
amount keyword is discarded when its surroundings say it is something else.
"""
from __future__ import annotations

from typing import Sequence

# Reject: within PREFIX_CHECK_LEN chars before the number (lowercase)
BAD_AMOUNT_PREFIX: Sequence[str] = (
    "комиссия",
    "комисс",
    "сбор за",
    "сбор:",
    "остаток",
    "в т.ч.",
    "в т ч",
    "включая комиссию",
    "в том числе",
    "платеж за услуг",
    "счет",
    "счёт",
    "номер кошелька",
    "кошелька",
    "номер карты",
    "карты",
    "телефон",
)

# Reject the whole keyword window / line: requisites, IDs, authorization codes
BAD_AMOUNT_CONTEXT: Sequence[str] = (
    "идентификатор",
    "инн",
    "бик",
    "кпп",
    "авторизац",
)

# "итого 1 050 (в т.ч. комиссия 50)": the total includes a fee; take the amount from another line
TOTAL_KEYWORDS: Sequence[str] = ("итого", "всего")
COMMISSION_MARKERS: Sequence[str] = ("комиссия", "в т.ч.", "в т ч")

PREFIX_CHECK_LEN = 28
# Number is part of a masked card number if "**" follows within this many chars
CARD_MASK_SUFFIX_LEN = 15
# Keyword window for the whole-text pass
KEYWORD_WINDOW = 120


def has_any_keyword(text: str, keywords: Sequence[str]) -> bool:
    """True if text (already lowercase) contains any of the keywords."""
    return any(kw in text for kw in keywords)


def has_bad_prefix(text: str, num_pos: int) -> bool:
    """True if a commission/balance/account marker appears just before the number."""
    start = max(0, num_pos - PREFIX_CHECK_LEN)
    return has_any_keyword(text[start:num_pos].lower(), BAD_AMOUNT_PREFIX)


def looks_masked(text: str, num_pos: int, num_str: str) -> bool:
    """True if the number is part of a masked card/account (**** 1234 or 2202 20** ****)."""
    end = num_pos + len(num_str)
    if "**" in text[end : end + CARD_MASK_SUFFIX_LEN]:
        return True
    return text[:num_pos].rstrip().endswith("*")


def window_rejected(window: str, keyword: str) -> bool:
    """True if the keyword's context disqualifies every number in it."""
    lower = window.lower()
    if has_any_keyword(lower, BAD_AMOUNT_CONTEXT):
        return True
    return keyword in TOTAL_KEYWORDS and has_any_keyword(lower, COMMISSION_MARKERS)


def is_acceptable_position(text: str, num_pos: int, num_str: str) -> bool:
    """Per-number guard shared by both amount passes."""
    return not has_bad_prefix(text, num_pos) and not looks_masked(text, num_pos, num_str)
