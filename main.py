"""
Payment receipt text extraction: command-line entry point.

Usage:
  python main.py FILE... [--config PATH] [--ai] [--workers N] [--output PATH] [--log-level LEVEL]

- FILE: UTF-8 text produced by OCR from a receipt screenshot; "-" reads one receipt from stdin.
- Each receipt goes through the heuristic parser; with --ai (and an API key configured)
  incomplete or low-confidence results are retried through the LLM extractor.
- Output: JSON with one entry per receipt plus batch metrics, printed to stdout or written to --output.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from core.exceptions import ConfigError
from pipeline.batch_processor import BatchProcessor, update_metrics
from pipeline.receipt_pipeline import ReceiptPipeline
from services.ai_extraction_service import AIReceiptExtractor
from utils.config import AppConfig, load_config
from utils.logger import setup_logging

STDIN_NAME = "-"


def build_pipeline(config: AppConfig) -> ReceiptPipeline:
    """Wire the AI extractor (when enabled) into the receipt pipeline."""
    extractor = AIReceiptExtractor.from_config(config.ai) if config.ai.enabled else None
    return ReceiptPipeline(
        extractor,
        fallback_threshold=config.fallback_threshold,
        ai_enabled=config.ai.enabled,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract payment amount, date and bank from OCR text of Russian payment receipts",
    )
    parser.add_argument("files", nargs="+", help="Receipt text files ('-' for stdin)")
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="YAML config path (default: config.yaml if present)",
    )
    parser.add_argument(
        "--ai",
        action="store_true",
        help="Enable the LLM fallback for incomplete or low-confidence results",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of parallel workers (default: 1)",
    )
    parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Write JSON here instead of stdout",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    overrides: dict[str, Any] = {}
    if args.workers is not None:
        overrides["max_workers"] = args.workers
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.ai:
        overrides["ai"] = replace(config.ai, enabled=True)
    config = config.with_overrides(**overrides)
    setup_logging(config.log_level)
    log = logging.getLogger(__name__)

    pipeline = build_pipeline(config)
    if config.ai.enabled and not config.ai.api_key:
        log.warning("AI fallback enabled but OPENAI_API_KEY is not set; heuristic results only")

    stdin_result = None
    if STDIN_NAME in args.files:
        stdin_result = pipeline.process(sys.stdin.read(), name="<stdin>")
    file_paths = [Path(f) for f in args.files if f != STDIN_NAME]

    processor = BatchProcessor(pipeline, max_workers=config.max_workers)
    batch_results, metrics = processor.process_batch(file_paths)
    if stdin_result is not None:
        batch_results.insert(0, stdin_result)
        update_metrics(metrics, stdin_result)
    results = [r.to_dict() for r in batch_results]

    out = {"results": results, "metrics": metrics.to_dict()}
    text = json.dumps(out, ensure_ascii=False, indent=2)
    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
        log.info("Output written to %s", out_path)
    else:
        print(text)
    return 1 if metrics.failed_count else 0


if __name__ == "__main__":
    sys.exit(main())
