"""Extraction: OCR text preprocessing and heuristic receipt parsing."""

from extraction.preprocessor import preprocess, preprocess_for_numbers
from extraction.receipt_parser import (
    ReceiptParser,
    parse_receipt,
    calculate_confidence,
    normalize_amount,
)

__all__ = [
    "preprocess",
    "preprocess_for_numbers",
    "ReceiptParser",
    "parse_receipt",
    "calculate_confidence",
    "normalize_amount",
]
