"""Custom exceptions for the receipt extraction core. No generic Exception usage."""

from __future__ import annotations


class ReceiptProcessingError(Exception):
    """Base exception for receipt processing failures."""

    pass


class ConfigError(ReceiptProcessingError):
    """Invalid or missing configuration."""

    pass


class ExtractionError(ReceiptProcessingError):
    """Receipt text could not be read or processed."""

    pass


class StructuredOutputError(ReceiptProcessingError):
    """LLM output could not be parsed as a JSON object."""

    pass
