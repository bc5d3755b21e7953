"""Pipeline orchestrator: drives the checker registry over a feed.

Feed-quality pass:
  Stage 1 → Obtain records (fatal if none can be obtained)
  Stage 2 → Partition into fixed-size chunks
  Stage 3 → Evaluate chunks on a worker pool (per-checker fault isolation)
  Stage 4 → Flush chunk reports in ascending order into one aggregate,
            emitting a ``chunk`` progress event per flush
  Stage 5 → Feed-level checks (duplicate ids), terminal ``complete`` event

Chunks share no mutable state; the only shared structure is the aggregate
``AnalysisResult``, written exclusively by the flushing loop in ``run``.
Completions that arrive out of order simply wait in their futures until
every earlier chunk has been flushed.
"""

from __future__ import annotations

import asyncio
import threading
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import AsyncGenerator, Callable, Iterable, Sequence

from feedaudit.config import CHUNK_SIZE, MAX_WORKERS, TRACE_ENABLED
from feedaudit.pipeline.schemas import AnalysisResult, ErrorResult, FeedItem, ProgressEvent
from feedaudit.pipeline.checkers.base import Checker
from feedaudit.pipeline.check_registry import CheckerRegistry
from feedaudit.pipeline.feed_reader import FeedReadError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]
RecordSource = Sequence[FeedItem] | Iterable[FeedItem] | Callable[[], Iterable[FeedItem]]


def _trace(msg: str):
    if TRACE_ENABLED:
        logger.debug(f"[TRACE] {msg}")


# ═══════════════════════════════════════════════════
# 1. RECORD-LEVEL EVALUATION
# ═══════════════════════════════════════════════════

def evaluate_record(item: FeedItem, checkers: Sequence[Checker]) -> list[ErrorResult]:
    """Run every checker over one record, in registration order.

    A checker that raises is logged and treated as "no finding" for this
    record so one broken rule cannot abort the pass.
    """
    results = []
    for checker in checkers:
        try:
            result = checker(item)
        except Exception as e:
            logger.error(f"Checker [{checker.label}] failed on id={item.report_id}: {e}")
            continue
        if result is not None:
            _trace(f"{checker.name} → {result.error_type} (id={result.id})")
            results.append(result)
    return results


def evaluate_chunk(chunk: Sequence[FeedItem], checkers: Sequence[Checker]) -> AnalysisResult:
    """Chunk-local report: records in order, findings in checker order."""
    report = AnalysisResult(expected_products=len(chunk))
    for item in chunk:
        for error in evaluate_record(item, checkers):
            report.add(error)
    report.total_products = len(chunk)
    return report


def partition(items: Sequence[FeedItem], chunk_size: int) -> list[Sequence[FeedItem]]:
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return [items[i:i + chunk_size] for i in range(0, len(items), chunk_size)]


def obtain_records(source: RecordSource | None) -> list[FeedItem]:
    """Materialize the record source; any failure here is fatal."""
    if source is None:
        raise FeedReadError("No feed records supplied")
    try:
        if callable(source):
            source = source()
        return list(source)
    except FeedReadError:
        raise
    except Exception as e:
        raise FeedReadError(f"Could not obtain feed records: {e}") from e


# ═══════════════════════════════════════════════════
# 2. FEED-QUALITY PIPELINE
# ═══════════════════════════════════════════════════

class FeedQualityPipeline:
    """Chunked, optionally parallel evaluation of a checker registry.

    Args:
        registry: ordered checks to apply (already filtered by the caller)
        max_workers: chunk-level parallelism; 1 evaluates chunks one at a time
        cancel_event: set it (or call :meth:`cancel`) to stop scheduling
            further chunks; chunks already in flight still complete
    """

    def __init__(
        self,
        registry: CheckerRegistry,
        *,
        max_workers: int = MAX_WORKERS,
        cancel_event: threading.Event | None = None,
    ):
        self.registry = registry
        self.max_workers = max(1, max_workers)
        self.cancel_event = cancel_event or threading.Event()

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def run(
        self,
        records: RecordSource | None,
        chunk_size: int = CHUNK_SIZE,
        on_progress: ProgressCallback | None = None,
    ) -> AnalysisResult:
        """Evaluate every record and return the finalized report.

        Emits one ``chunk`` event per flushed chunk, an ``error`` event per
        failed chunk, and exactly one terminal ``complete`` event.

        Raises:
            FeedReadError: no records could be obtained (before any event)
        """
        items = obtain_records(records)
        chunks = partition(items, chunk_size) if items else []
        total = len(items)
        total_chunks = len(chunks)
        checkers = self.registry.checkers

        def emit(event: ProgressEvent):
            if on_progress is None:
                return
            try:
                on_progress(event)
            except Exception as e:
                logger.error(f"Progress callback failed on {event.status} event: {e}")

        logger.info(
            f"Feed pass: {total} record(s), {total_chunks} chunk(s) of {chunk_size}, "
            f"{len(checkers)} checker(s), {self.max_workers} worker(s)"
        )

        report = AnalysisResult(expected_products=total)
        processed_items: list[FeedItem] = []
        failed_chunks: list[int] = []
        # Bound in-flight work so a cancel takes effect within a couple of chunks
        window = self.max_workers * 2

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="feed-chunk") as pool:
            in_flight = {}
            next_submit = 0
            next_flush = 0
            while next_flush < total_chunks:
                while next_submit < total_chunks and len(in_flight) < window and not self.cancelled:
                    in_flight[next_submit] = pool.submit(evaluate_chunk, chunks[next_submit], checkers)
                    next_submit += 1
                if next_flush not in in_flight:
                    break  # cancelled before this chunk was scheduled
                future = in_flight.pop(next_flush)
                try:
                    chunk_report = future.result()
                except Exception as e:
                    failed_chunks.append(next_flush)
                    logger.error(f"Feed pass: chunk {next_flush + 1}/{total_chunks} failed: {e}")
                    emit(ProgressEvent(
                        status="error",
                        stage="chunk",
                        chunk_index=next_flush,
                        total_chunks=total_chunks,
                        processed=report.total_products,
                        total=total,
                        message=f"Chunk {next_flush + 1} of {total_chunks} failed: {e}",
                    ))
                else:
                    report.merge(chunk_report)
                    processed_items.extend(chunks[next_flush])
                    emit(ProgressEvent(
                        status="chunk",
                        chunk_index=next_flush,
                        total_chunks=total_chunks,
                        processed=report.total_products,
                        total=total,
                        progress=round((next_flush + 1) / total_chunks * 100),
                        chunk=[e.to_dict() for e in chunk_report.errors],
                    ))
                next_flush += 1

        skipped_chunks = total_chunks - next_flush
        report.truncated = bool(failed_chunks) or skipped_chunks > 0

        for feed_check in self.registry.feed_checks:
            try:
                for error in feed_check.fn(processed_items):
                    report.add(error)
            except Exception as e:
                logger.error(f"Feed check [{feed_check.label}] failed: {e}")

        if skipped_chunks:
            message = (
                f"Analysis cancelled: {report.total_products} of {total} record(s) processed"
            )
        elif failed_chunks:
            message = (
                f"Analysis finished with {len(failed_chunks)} failed chunk(s): "
                f"{report.total_products} of {total} record(s) processed"
            )
        else:
            message = f"Analysis complete: {total} record(s), {len(report.errors)} finding(s)"
        logger.info(f"Feed pass: {message}")

        emit(ProgressEvent(
            status="complete",
            processed=report.total_products,
            total=total,
            total_chunks=total_chunks,
            progress=100 if not report.truncated else None,
            message=message,
            result=report.to_dict(),
        ))
        return report

    async def stream(
        self,
        records: RecordSource | None,
        chunk_size: int = CHUNK_SIZE,
    ) -> AsyncGenerator[ProgressEvent, None]:
        """Async view of :meth:`run` for SSE: yields events as they happen.

        The pass runs on a worker thread; closing the generator early
        (client disconnect) cancels scheduling of the remaining chunks.
        ``FeedReadError`` propagates before any event is yielded.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        done = object()

        def _on_progress(event: ProgressEvent):
            loop.call_soon_threadsafe(queue.put_nowait, event)

        def _run():
            try:
                return self.run(records, chunk_size, _on_progress)
            finally:
                loop.call_soon_threadsafe(queue.put_nowait, done)

        task = loop.run_in_executor(None, _run)
        try:
            while True:
                event = await queue.get()
                if event is done:
                    break
                yield event
            await task  # re-raise a fatal fault from the worker thread
        finally:
            if not task.done():
                self.cancel()


