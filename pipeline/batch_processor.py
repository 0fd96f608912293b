"""
Batch processor: list of text files -> run pipeline per file, collect metrics.
Does not duplicate pipeline logic; uses ReceiptPipeline.process().
Supports parallel execution via max_workers (ThreadPoolExecutor), which also bounds concurrent AI calls.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from core.exceptions import ExtractionError
from core.models import BatchMetrics, ProcessedReceipt
from pipeline.receipt_pipeline import HEURISTIC_SOURCE, ReceiptPipeline

logger = logging.getLogger(__name__)


def update_metrics(metrics: BatchMetrics, result: ProcessedReceipt) -> None:
    """Update counts from a single ProcessedReceipt."""
    metrics.total_processed += 1
    if result.source == HEURISTIC_SOURCE:
        metrics.heuristic_count += 1
    else:
        metrics.ai_count += 1
    if result.needs_review:
        metrics.needs_review_count += 1


def read_receipt_text(path: str | Path) -> str:
    """Read a UTF-8 receipt text file. Raises ExtractionError if missing or unreadable."""
    p = Path(path)
    if not p.is_file():
        raise ExtractionError(f"Receipt file not found: {p}")
    try:
        return p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ExtractionError(f"Cannot read receipt file {p}: {e}") from e


def _process_one(pipeline: ReceiptPipeline, path: str | Path) -> ProcessedReceipt:
    p = Path(path)
    logger.info("Processing file=%s", p.name)
    return pipeline.process(read_receipt_text(p), name=p.name)


class BatchProcessor:
    """Process many receipt files with one pipeline; results keep input order."""

    def __init__(self, pipeline: ReceiptPipeline, max_workers: int = 1) -> None:
        self._pipeline = pipeline
        self._max_workers = max(1, max_workers)

    def process_batch(
        self,
        file_paths: list[str | Path],
        *,
        stop_on_first_error: bool = False,
    ) -> tuple[list[ProcessedReceipt], BatchMetrics]:
        """
        Run pipeline.process() for each file (in parallel when max_workers > 1). Returns (results, metrics).
        On error: if stop_on_first_error, re-raise; else log and continue, increment failed_count.
        Failed files are absent from results.
        """
        metrics = BatchMetrics()
        start = time.perf_counter()
        completed: dict[int, ProcessedReceipt] = {}

        if self._max_workers > 1 and len(file_paths) > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                futures = {
                    executor.submit(_process_one, self._pipeline, path): i
                    for i, path in enumerate(file_paths)
                }
                for future in as_completed(futures):
                    idx = futures[future]
                    try:
                        completed[idx] = future.result()
                    except Exception as e:
                        metrics.failed_count += 1
                        logger.error("Batch item failed file=%s: %s", file_paths[idx], e)
                        if stop_on_first_error:
                            for f in futures:
                                f.cancel()
                            raise
        else:
            for i, path in enumerate(file_paths):
                try:
                    completed[i] = _process_one(self._pipeline, path)
                except Exception as e:
                    metrics.failed_count += 1
                    logger.error("Batch item failed file=%s: %s", path, e)
                    if stop_on_first_error:
                        raise

        results = [completed[i] for i in sorted(completed)]
        for result in results:
            update_metrics(metrics, result)
        metrics.total_time_sec = time.perf_counter() - start
        logger.info("Batch finished: %s", metrics.to_dict())
        return results, metrics
