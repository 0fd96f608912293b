"""
OCR text normalization for payment receipts: fix line endings, exotic spaces and
letter-for-digit misreadings so the parser sees correct numbers.

Two variants:
  preprocess()             case-folded, for keyword and bank matching
  preprocess_for_numbers() case preserved, input of the date/amount regexes
"""

from __future__ import annotations

import re

_LINE_ENDINGS = re.compile(r"\r\n|\r")
# NBSP, typographic spaces U+2000..U+200B, narrow NBSP, medium math space, ideographic space
_EXOTIC_SPACES = re.compile("[\u00a0\u2000-\u200b\u202f\u205f\u3000]")
_HORIZONTAL_WS = re.compile(r"[ \t]+")

# "10 ооо ₽" / "1ООО" -> zeros; Latin and Cyrillic O in both cases
_O_RUN_BEFORE_CURRENCY = re.compile(r"(\d)(\s*)([ОоOo]+)(\s*[₽рРруб\d]|$)")
_O_RUN_BEFORE_CURRENCY_LOWER = re.compile(r"(\d)(\s*)([оo]+)(\s*[₽руб\d]|$)")
_O_COUNT = re.compile(r"[ОоOo]")

_O_AFTER_DIGIT = re.compile(r"(\d)[ОоOo](?=\d)")
_O_BEFORE_DIGIT = re.compile(r"(?<=\d)[ОоOo](\d)")
_L_AFTER_DIGIT = re.compile(r"(\d)l(?=\d)")
_L_BEFORE_DIGIT = re.compile(r"(?<=\d)l(\d)")

# Case-folded variant fixes a glyph touching a digit on either side
_O_ADJACENT_LEFT = re.compile(r"(\d)[оo]")
_O_ADJACENT_RIGHT = re.compile(r"[оo](\d)")
_L_ADJACENT_LEFT = re.compile(r"(\d)l")
_L_ADJACENT_RIGHT = re.compile(r"l(\d)")

# "10,50" -> "10.50" only when exactly two digits follow the comma
_DECIMAL_COMMA = re.compile(r"(\d),(\d{2})(?=\D|$)")


def _expand_o_run(m: re.Match) -> str:
    count = len(_O_COUNT.findall(m.group(3)))
    return m.group(1) + m.group(2) + "0" * count + m.group(4)


def _normalize_whitespace(text: str) -> str:
    t = _LINE_ENDINGS.sub("\n", text)
    t = _EXOTIC_SPACES.sub(" ", t)
    return _HORIZONTAL_WS.sub(" ", t)


def preprocess(text: str) -> str:
    """
    Case-folded normalization used for keyword and bank detection.
    Never raises; empty input yields empty output.
    """
    if not text:
        return ""
    t = _normalize_whitespace(text).lower()
    t = _O_RUN_BEFORE_CURRENCY_LOWER.sub(_expand_o_run, t)
    t = _O_ADJACENT_LEFT.sub(r"\g<1>0", t)
    t = _O_ADJACENT_RIGHT.sub(r"0\g<1>", t)
    t = _L_ADJACENT_LEFT.sub(r"\g<1>1", t)
    t = _L_ADJACENT_RIGHT.sub(r"1\g<1>", t)
    return _DECIMAL_COMMA.sub(r"\g<1>.\g<2>", t)


def preprocess_for_numbers(text: str) -> str:
    """
    Normalization for date/amount extraction. Keeps case: amount regexes look at
    surrounding characters. Letters are only replaced in numeric context.
    """
    if not text:
        return ""
    t = _normalize_whitespace(text)
    t = _O_RUN_BEFORE_CURRENCY.sub(_expand_o_run, t)
    t = _O_AFTER_DIGIT.sub(r"\g<1>0", t)
    t = _O_BEFORE_DIGIT.sub(r"0\g<1>", t)
    t = _L_AFTER_DIGIT.sub(r"\g<1>1", t)
    t = _L_BEFORE_DIGIT.sub(r"1\g<1>", t)
    return _DECIMAL_COMMA.sub(r"\g<1>.\g<2>", t)
