"""Services: AI fallback extraction over an injected LLM provider."""

from services.ai_extraction_service import AIReceiptExtractor

__all__ = [
    "AIReceiptExtractor",
]
