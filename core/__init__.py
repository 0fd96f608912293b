"""Core layer: interfaces, models, exceptions."""

from core.interfaces import (
    ILLMProvider,
    IAIExtractor,
    IFallbackStrategy,
)
from core.models import (
    DateCandidate,
    AmountCandidate,
    ParseResult,
    AIExtractionResult,
    ProcessedReceipt,
    BatchMetrics,
)
from core.exceptions import (
    ReceiptProcessingError,
    ConfigError,
    ExtractionError,
    StructuredOutputError,
)

__all__ = [
    "ILLMProvider",
    "IAIExtractor",
    "IFallbackStrategy",
    "DateCandidate",
    "AmountCandidate",
    "ParseResult",
    "AIExtractionResult",
    "ProcessedReceipt",
    "BatchMetrics",
    "ReceiptProcessingError",
    "ConfigError",
    "ExtractionError",
    "StructuredOutputError",
]
