"""Pipeline: single-receipt and batch processing."""

from pipeline.receipt_pipeline import ReceiptPipeline
from pipeline.batch_processor import BatchProcessor, read_receipt_text
from pipeline.fallback import ConfidenceFallbackStrategy

__all__ = [
    "ReceiptPipeline",
    "BatchProcessor",
    "read_receipt_text",
    "ConfidenceFallbackStrategy",
]
