"""Shared utilities: config, logger."""

from utils.config import AppConfig, ReceiptAIConfig, load_config
from utils.logger import setup_logging, log_structured, preview

__all__ = [
    "AppConfig",
    "ReceiptAIConfig",
    "load_config",
    "setup_logging",
    "log_structured",
    "preview",
]
