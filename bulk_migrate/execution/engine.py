"""
Bounded-concurrency batch engine.

`BatchEngine.run` pulls input records lazily and hands each one to a fixed
pool of worker threads, never holding more than `concurrency_limit` records
in flight. A slot is taken *before* the next record is pulled from the source,
so the source is only read as fast as workers free up and nothing beyond the
in-flight window is ever buffered.

For every record the worker:

1. calls `process_one(record)` (which converts per-record failures into a
   FAILED outcome itself),
2. appends the outcome to the recorder,
3. updates the run statistics,
4. frees its slot.

The recorder write happens before the slot is released, so a record whose
slot has been handed to the next record is always on disk.

`run` raises only when the record source fails or when a collaborator breaks
its contract (`process_one` or the recorder raising). In both cases no new
record is pulled, every in-flight record is allowed to finish and be recorded,
and then the error is re-raised.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from bulk_migrate.domain.models import InputRecord, OutcomeRecord
from bulk_migrate.utils.logging import get_logger

log = get_logger(__name__)

ProgressCallback = Callable[[Dict[str, int]], None]


class OutcomeSink(Protocol):
    def append(self, outcome: OutcomeRecord) -> None:
        ...


@dataclass
class RunStatistics:
    """
    Aggregate counters for one run.

    Updated by the engine under `_lock`; read them through `snapshot()` while a
    run is in progress.
    """

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    concurrent: int = 0
    peak_concurrent: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def start(self) -> None:
        with self._lock:
            self.attempted += 1
            self.concurrent += 1
            self.peak_concurrent = max(self.peak_concurrent, self.concurrent)

    def finish(self, succeeded: Optional[bool]) -> None:
        """Close one in-flight record; `None` means no outcome was produced."""
        with self._lock:
            self.concurrent -= 1
            if succeeded is True:
                self.succeeded += 1
            elif succeeded is False:
                self.failed += 1

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return {
                "attempted": self.attempted,
                "succeeded": self.succeeded,
                "failed": self.failed,
                "concurrent": self.concurrent,
                "peak_concurrent": self.peak_concurrent,
            }


class BatchEngine:
    """
    Parameters
    ----------
    recorder : OutcomeSink
        Durable sink; `append` must be safe to call from several threads.
    on_progress : callable | None
        Receives a statistics snapshot whenever a record starts or finishes.
    thread_name_prefix : str
        Prefix for worker thread names (shows up in logs).
    """

    def __init__(
        self,
        recorder: OutcomeSink,
        on_progress: Optional[ProgressCallback] = None,
        thread_name_prefix: str = "bulk-migrate",
    ) -> None:
        self._recorder = recorder
        self._on_progress = on_progress
        self._thread_name_prefix = thread_name_prefix

    def run(
        self,
        records: Iterable[InputRecord],
        concurrency_limit: int,
        process_one: Callable[[InputRecord], OutcomeRecord],
    ) -> RunStatistics:
        """
        Process every record with at most `concurrency_limit` in flight.

        Returns
        -------
        RunStatistics
            Final counters; `attempted == succeeded + failed` on normal return.

        Raises
        ------
        ValueError
            If `concurrency_limit` is below 1.
        Exception
            Whatever the record source raised (after in-flight records drain),
            or the first error raised by `process_one` or the recorder.
        """
        if concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be >= 1, got {concurrency_limit}")

        stats = RunStatistics()
        slots = threading.BoundedSemaphore(concurrency_limit)
        abort = threading.Event()
        worker_errors: List[BaseException] = []
        errors_lock = threading.Lock()

        def complete(record: InputRecord) -> None:
            succeeded: Optional[bool] = None
            try:
                outcome = process_one(record)
                self._recorder.append(outcome)
                succeeded = outcome.succeeded
            except BaseException as exc:  # noqa: BLE001 - re-raised by run() after drain
                log.exception("Record processing broke the engine contract; stopping intake")
                with errors_lock:
                    worker_errors.append(exc)
                abort.set()
            finally:
                stats.finish(succeeded)
                slots.release()
            self._notify(stats)

        iterator = iter(records)
        with ThreadPoolExecutor(
            max_workers=concurrency_limit, thread_name_prefix=self._thread_name_prefix
        ) as pool:
            while True:
                slots.acquire()
                if abort.is_set():
                    slots.release()
                    break
                try:
                    record = next(iterator)
                except StopIteration:
                    slots.release()
                    break
                except BaseException:
                    # Leaving the with-block waits for in-flight records first.
                    slots.release()
                    log.error("Record source failed; draining in-flight records")
                    raise
                stats.start()
                self._notify(stats)
                pool.submit(complete, record)

        if worker_errors:
            raise worker_errors[0]
        return stats

    def _notify(self, stats: RunStatistics) -> None:
        if self._on_progress is None:
            return
        try:
            self._on_progress(stats.snapshot())
        except Exception:  # noqa: BLE001 - progress display must not stop the batch
            log.exception("Progress callback failed")


__all__ = ["BatchEngine", "OutcomeSink", "ProgressCallback", "RunStatistics"]
