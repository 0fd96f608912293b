"""
Unit tests for the heuristic receipt parser: dates, amounts, banks, confidence.
Dates use 2024 so they stay inside the accepted year range.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from core.models import ParseResult
from extraction.amount_context import (
    has_bad_prefix,
    is_acceptable_position,
    looks_masked,
    window_rejected,
)
from extraction.receipt_parser import (
    MAX_INPUT_LENGTH,
    ReceiptParser,
    calculate_confidence,
    normalize_amount,
    parse_receipt,
)

SBER_RECEIPT = (
    "ПАО Сбербанк\n"
    "Чек по операции\n"
    "Дата: 15.03.2024 14:30\n"
    "Итого: 12 500,00 ₽\n"
    "Комиссия: 0 ₽"
)


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------


def test_end_to_end_receipt() -> None:
    result = parse_receipt("Чек по операции\nДата: 15.03.2024 14:30\nИтого: 12 500,00 ₽\nКомиссия: 0 ₽")
    assert result["date"] == "2024-03-15 14:30"
    assert result["amount"] == 12500.0
    assert result["sum"] == result["amount"]
    assert result["currency"] == "RUB"
    assert result["parsing_confidence"] == 1.0
    assert "bank_code" not in result


def test_result_mapping_omits_absent_fields() -> None:
    result = parse_receipt("Спасибо за покупку")
    assert "date" not in result
    assert "amount" not in result
    assert "sum" not in result
    assert result["parsing_confidence"] == 0.0
    assert result["currency"] == "RUB"
    assert result["raw_text"] == "Спасибо за покупку"


def test_raw_text_is_first_500_chars_of_normalized_text() -> None:
    text = "Итого: 1O0 ₽\n" + "x" * 1000
    result = parse_receipt(text)
    assert len(result["raw_text"]) == 500
    assert result["raw_text"].startswith("Итого: 100 ₽")


def test_parse_is_idempotent() -> None:
    parser = ReceiptParser(SBER_RECEIPT)
    assert parser.parse() == parser.parse()
    assert parse_receipt(SBER_RECEIPT) == parse_receipt(SBER_RECEIPT)


def test_parse_returns_value_object() -> None:
    result = ReceiptParser(SBER_RECEIPT).parse()
    assert isinstance(result, ParseResult)
    assert result.bank_code == "sber"
    assert result.amount == 12500.0


@pytest.mark.parametrize(
    "text",
    [
        "",
        "Итого",
        "Итого: 0,50",
        "Дата: 31.12.2024\nДата: 01.01.2024\nИтого: 100",
        SBER_RECEIPT * 50,
    ],
)
def test_confidence_always_in_range(text: str) -> None:
    confidence = ReceiptParser(text).parse().confidence
    assert 0.0 <= confidence <= 1.0
    assert round(confidence, 2) == confidence


def test_very_long_input_is_truncated() -> None:
    text = "Итого: 500 ₽\n" + "а" * (MAX_INPUT_LENGTH * 2)
    parser = ReceiptParser(text)
    assert len(parser.text) <= MAX_INPUT_LENGTH
    assert parser.parse().amount == 500.0


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def test_date_with_seconds() -> None:
    date, count = ReceiptParser("Дата операции: 15.03.2024 14:30:05").extract_date()
    assert date == "2024-03-15 14:30:05"
    assert count == 1


def test_date_without_time() -> None:
    date, _ = ReceiptParser("Дата: 01/02/2024").extract_date()
    assert date == "2024-02-01"


def test_two_digit_year() -> None:
    date, _ = ReceiptParser("Дата: 15.03.24 09:05").extract_date()
    assert date == "2024-03-15 09:05"


def test_iso_date_with_time() -> None:
    date, _ = ReceiptParser("Дата операции: 2024-03-15 14:30").extract_date()
    assert date == "2024-03-15 14:30"


def test_russian_month_fallback() -> None:
    parser = ReceiptParser("Операция от 15 марта 2024 в 14:30\nСумма: 700 ₽")
    date, count = parser.extract_date()
    assert date == "2024-03-15 14:30"
    assert count == 0
    assert parser.parse().confidence == 1.0


def test_year_before_2018_rejected() -> None:
    date, count = ReceiptParser("Дата: 15.03.2017").extract_date()
    assert date is None
    assert count == 0


def test_future_year_rejected() -> None:
    next_year = datetime.now().year + 1
    date, _ = ReceiptParser(f"Дата: 15.03.{next_year}").extract_date()
    assert date is None


def test_invalid_day_or_month_rejected() -> None:
    date, _ = ReceiptParser("Дата: 32.13.2024").extract_date()
    assert date is None


def test_day_is_not_checked_against_month_length() -> None:
    date, _ = ReceiptParser("Дата: 31.04.2024").extract_date()
    assert date == "2024-04-31"


def test_earliest_date_wins() -> None:
    text = "Дата: 16.03.2024 10:00\nДата зачисления: 15.03.2024 10:05"
    date, count = ReceiptParser(text).extract_date()
    assert date == "2024-03-16 10:00"
    assert count == 2


def test_same_date_in_several_formats_counts_once() -> None:
    text = "Дата: 15.03.2024 14:30\nВремя: 15.03.2024"
    _, count = ReceiptParser(text).extract_date()
    assert count == 1


def test_date_years_stay_in_range() -> None:
    date = ReceiptParser(SBER_RECEIPT).parse().date
    assert date is not None
    assert 2018 <= int(date[:4]) <= datetime.now().year



def test_date_outside_context_is_filtered_out() -> None:
    text = "x" * 200 + " 10.03.2024 " + "x" * 200 + " Дата 12.03.2024"
    assert ReceiptParser(text).extract_date() == ("2024-03-12", 2)


def test_all_dates_kept_when_none_pass_context_filter() -> None:
    text = "x" * 400 + " 15.03.2024 " + "x" * 400
    assert ReceiptParser(text).extract_date() == ("2024-03-15", 1)

# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def test_ocr_letter_o_in_amount() -> None:
    parser = ReceiptParser("1O 000,50 ₽ итого")
    assert parser.extract_amount() == (10000.5, True)


def test_commission_line_excluded() -> None:
    text = "Комиссия: итого 50\nПолучатель: Иван Иванович П.\nИтого: 500"
    assert ReceiptParser(text).parse().amount == 500.0


def test_keyword_priority() -> None:
    assert ReceiptParser("Всего: 300\nИтого: 500").parse().amount == 500.0
    assert ReceiptParser("Итого: 300\nВсего: 500").parse().amount == 300.0


def test_larger_value_wins_within_same_keyword() -> None:
    assert ReceiptParser("Сумма: 100\nСумма: 250").parse().amount == 250.0


def test_amount_without_keyword_is_ignored() -> None:
    assert ReceiptParser("Перевод 500 ₽ выполнен").parse().amount is None


def test_amount_is_not_taken_from_date_or_time() -> None:
    assert ReceiptParser("Списано 15.03.2024 14:30").parse().amount is None


def test_amount_with_dot_decimals_stays_one_token() -> None:
    assert ReceiptParser("Сумма перевода: 12500.00 руб").parse().amount == 12500.0


def test_thousands_dots_and_comma_decimals() -> None:
    assert ReceiptParser("Итого: 1.250,00").parse().amount == 1250.0


def test_identifier_near_keyword_rejects_proximity_pass_only() -> None:
    text = "Сумма: 1 500,00 ₽\nИНН получателя 7707083893"
    assert ReceiptParser(text).parse().amount == 1500.0


def test_identifier_on_keyword_line_rejects_line() -> None:
    text = "Сумма операции, код авторизации 123456"
    assert ReceiptParser(text).parse().amount is None


def test_masked_card_number_rejected() -> None:
    text = "Списано с карты **** 4417\nСписано: 800 ₽"
    assert ReceiptParser(text).parse().amount == 800.0


def test_total_with_included_commission_rejected() -> None:
    text = "Итого 1 050 (в т.ч. комиссия 50)"
    assert ReceiptParser(text).parse().amount is None


def test_amount_bounds() -> None:
    assert ReceiptParser("Итого: 0,50").parse().amount is None
    assert ReceiptParser("Итого: 20 000 000").parse().amount is None
    assert ReceiptParser("Итого: 10 000 000").parse().amount == 10_000_000.0


def test_receipt_number_after_amount_is_ignored() -> None:
    result = ReceiptParser("Дата: 15.03.2024\nСумма операции 500 ₽ Номер операции 1234567").parse()
    assert result.amount == 500.0
    assert result.date == "2024-03-15"
    assert result.confidence == 1.0


def test_year_before_keyword_is_ignored() -> None:
    result = ReceiptParser("Оплата 5 Марта 2024 в 9:05 Итого 100 р").parse()
    assert result.amount == 100.0
    assert result.date == "2024-03-05 09:05"


def test_keyword_line_takes_first_number_after_keyword() -> None:
    candidates = ReceiptParser("Итого 100 р, чек 2500").find_amount_candidates()
    assert [c.value for c in candidates] == [100.0, 100.0]


def test_amount_over_ten_characters_rejected() -> None:
    assert ReceiptParser("Итого: 10 000 000,00").parse().amount is None


def test_candidates_from_both_passes_overlap() -> None:
    candidates = ReceiptParser("Итого: 500 ₽").find_amount_candidates()
    assert [c.value for c in candidates] == [500.0, 500.0]
    assert all(c.source_keyword == "итого" and c.keyword_priority_rank == 0 for c in candidates)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("12 500,00", 12500.0),
        ("12500.00", 12500.0),
        ("1.250,00", 1250.0),
        ("99.9", 99.9),
        ("0.50", None),
        ("10000001", None),
        ("12345678901", None),
        ("10000000.00", None),
        ("9999999.99", 9999999.99),
        ("abc", None),
    ],
)
def test_normalize_amount(raw: str, expected: float | None) -> None:
    assert normalize_amount(raw) == expected


# ---------------------------------------------------------------------------
# Amount context guards
# ---------------------------------------------------------------------------


def test_bad_prefix() -> None:
    text = "Комиссия: 50"
    assert has_bad_prefix(text, text.index("50"))
    text = "Остаток по счёту 12 000"
    assert has_bad_prefix(text, text.index("12"))
    text = "Итого: 500"
    assert not has_bad_prefix(text, text.index("500"))


def test_looks_masked() -> None:
    assert looks_masked("**** 1234", 5, "1234")
    assert looks_masked("2202 20** ****", 0, "2202")
    assert not looks_masked("Итого: 500", 7, "500")


def test_window_rejected() -> None:
    assert window_rejected("итого 1050 (в т.ч. комиссия 50)", "итого")
    assert not window_rejected("сумма 1050 комиссия 50", "сумма")
    assert window_rejected("сумма 7707083893 ИНН", "сумма")


def test_acceptable_position() -> None:
    text = "Итого: 500"
    assert is_acceptable_position(text, 7, "500")
    text = "Номер карты 4417"
    assert not is_acceptable_position(text, text.index("4417"), "4417")


# ---------------------------------------------------------------------------
# Banks
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "text,bank",
    [
        ("ПАО Сбербанк", "sber"),
        ("SberBank Online", "sber"),
        ("АО «Тинькофф Банк»", "tinkoff"),
        ("Т-Банк", "tinkoff"),
        ("АО «Альфа-Банк»", "alfabank"),
        ("ВТБ", None),
    ],
)
def test_bank_detection(text: str, bank: str | None) -> None:
    assert ReceiptParser(text).extract_bank() == bank


def test_bank_detection_order() -> None:
    assert ReceiptParser("Перевод из Т-Банк в Сбер").extract_bank() == "sber"


# ---------------------------------------------------------------------------
# Confidence
# ---------------------------------------------------------------------------


def test_ambiguous_dates_cap_confidence() -> None:
    text = "Дата: 15.03.2024 14:30\nИтого: 500 ₽\nДата платежа: 16.03.2024"
    result = ReceiptParser(text).parse()
    assert result.date == "2024-03-15 14:30"
    assert result.amount == 500.0
    assert result.confidence == 0.65


@pytest.mark.parametrize(
    "date,amount,by_keyword,count,expected",
    [
        ("2024-03-15", 100.0, True, 1, 1.0),
        ("2024-03-15", 100.0, True, 0, 1.0),
        ("2024-03-15", 100.0, True, 2, 0.65),
        ("2024-03-15", None, False, 1, 0.4),
        ("2024-03-15", None, False, 3, 0.4),
        (None, 100.0, True, 0, 0.4),
        (None, 100.0, False, 0, 0.2),
        ("2024-03-15", 100.0, False, 1, 0.8),
        (None, None, False, 0, 0.0),
    ],
)
def test_calculate_confidence(
    date: str | None, amount: float | None, by_keyword: bool, count: int, expected: float
) -> None:
    assert calculate_confidence(date, amount, by_keyword, count) == expected
