"""Callbacks for progress tracking and failure reporting.

Slices may be dispatched from worker threads, so slice-level hooks can be
called concurrently. Built-in callbacks guard their own state.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any

from sliceflow.core import DispatchOutcome, SliceBoundary, SliceChunk


@dataclass
class ProcessingStats:
    """Statistics collected during a run."""

    start_time: float | None = None
    end_time: float | None = None
    image_shape: tuple[int, ...] | None = None
    total_slices: int = 0
    processed_slices: int = 0
    failed_slices: int = 0
    total_attempts: int = 0
    record_count: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def elapsed_time(self) -> float:
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else time.time()
        return end - self.start_time

    @property
    def slices_per_second(self) -> float:
        elapsed = self.elapsed_time
        return self.processed_slices / elapsed if elapsed > 0 else 0.0

    def record_outcome(self, outcome: DispatchOutcome) -> None:
        with self._lock:
            self.processed_slices += 1
            self.total_attempts += outcome.attempts
            self.record_count += len(outcome.records)
            if outcome.failed:
                self.failed_slices += 1


class SliceFlowCallback:
    """Base callback. Every hook is optional."""

    def on_processing_start(self, stats: ProcessingStats) -> None:
        pass

    def on_processing_end(self, stats: ProcessingStats) -> None:
        pass

    def on_processing_error(self, error: Exception, stats: ProcessingStats) -> None:
        pass

    def on_segmentation_end(self, boundaries: list[SliceBoundary]) -> None:
        pass

    def on_slice_start(self, chunk: SliceChunk, total_slices: int) -> None:
        pass

    def on_attempt_failed(
        self, chunk: SliceChunk, attempt: int, credential_hint: str, error: BaseException
    ) -> None:
        pass

    def on_slice_end(self, outcome: DispatchOutcome, total_slices: int) -> None:
        pass

    def on_slice_failed(self, outcome: DispatchOutcome) -> None:
        pass


class CompositeCallback(SliceFlowCallback):
    """Fans every hook out to a list of callbacks.

    A failing callback is reported and skipped; it never aborts the run.
    """

    def __init__(self, callbacks: list[SliceFlowCallback]) -> None:
        self.callbacks = list(callbacks)

    def _dispatch(self, method: str, *args: Any) -> None:
        for callback in self.callbacks:
            try:
                getattr(callback, method)(*args)
            except Exception as e:
                print(f"Callback error in {type(callback).__name__}.{method}: {e}")

    def on_processing_start(self, stats):
        self._dispatch("on_processing_start", stats)

    def on_processing_end(self, stats):
        self._dispatch("on_processing_end", stats)

    def on_processing_error(self, error, stats):
        self._dispatch("on_processing_error", error, stats)

    def on_segmentation_end(self, boundaries):
        self._dispatch("on_segmentation_end", boundaries)

    def on_slice_start(self, chunk, total_slices):
        self._dispatch("on_slice_start", chunk, total_slices)

    def on_attempt_failed(self, chunk, attempt, credential_hint, error):
        self._dispatch("on_attempt_failed", chunk, attempt, credential_hint, error)

    def on_slice_end(self, outcome, total_slices):
        self._dispatch("on_slice_end", outcome, total_slices)

    def on_slice_failed(self, outcome):
        self._dispatch("on_slice_failed", outcome)


class ProgressCallback(SliceFlowCallback):
    """Prints progress, key failovers and exhausted slices."""

    def __init__(self, verbose: bool = True, show_rate: bool = True) -> None:
        self.verbose = verbose
        self.show_rate = show_rate
        self._start_time: float | None = None
        self._done = 0
        self._lock = threading.Lock()

    def on_processing_start(self, stats):
        self._start_time = time.time()
        self._done = 0
        if self.verbose:
            shape = f" of shape {stats.image_shape}" if stats.image_shape else ""
            print(f"Starting processing image{shape}")

    def on_segmentation_end(self, boundaries):
        if self.verbose:
            heights = ", ".join(str(b.height) for b in boundaries)
            print(f"Segmented into {len(boundaries)} slices: [{heights}]")

    def on_attempt_failed(self, chunk, attempt, credential_hint, error):
        if self.verbose:
            print(
                f"Key {credential_hint} failed on slice {chunk.index + 1} "
                f"(attempt {attempt + 1}): {error}. Switching keys..."
            )

    def on_slice_end(self, outcome, total_slices):
        with self._lock:
            self._done += 1
            done = self._done
        if not self.verbose:
            return
        message = f"Slice {outcome.index + 1} done ({done}/{total_slices}): {len(outcome.records)} records"
        if self.show_rate and self._start_time is not None:
            elapsed = time.time() - self._start_time
            if elapsed > 0:
                message += f" [{done / elapsed:.2f} slices/sec]"
        print(message)

    def on_slice_failed(self, outcome):
        if self.verbose:
            print(f"Slice {outcome.index + 1} failed with all {outcome.attempts} keys.")

    def on_processing_end(self, stats):
        if self.verbose:
            print(
                f"Processing complete: {stats.processed_slices} slices, "
                f"{stats.failed_slices} failed, {stats.record_count} records "
                f"in {stats.elapsed_time:.2f}s"
            )

    def on_processing_error(self, error, stats):
        if self.verbose:
            print(f"Processing failed: {error}")


class MetricsCallback(SliceFlowCallback):
    """Collects per-slice timings, attempts and failures."""

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose
        self.stats = ProcessingStats()
        self._slice_starts: dict[int, float] = {}
        self._slice_times: dict[int, float] = {}
        self._attempts: dict[int, int] = {}
        self._failed: list[int] = []
        self._lock = threading.Lock()

    def on_processing_start(self, stats):
        self.stats = stats

    def on_slice_start(self, chunk, total_slices):
        with self._lock:
            self._slice_starts[chunk.index] = time.perf_counter()

    def on_slice_end(self, outcome, total_slices):
        now = time.perf_counter()
        with self._lock:
            start = self._slice_starts.pop(outcome.index, None)
            if start is not None:
                self._slice_times[outcome.index] = now - start
            self._attempts[outcome.index] = outcome.attempts

    def on_slice_failed(self, outcome):
        with self._lock:
            self._failed.append(outcome.index)

    def on_processing_end(self, stats):
        self.stats = stats
        if self.verbose:
            for key, value in self.get_detailed_metrics().items():
                print(f"{key}: {value}")

    def get_detailed_metrics(self) -> dict[str, Any]:
        times = list(self._slice_times.values())
        attempts = list(self._attempts.values())
        return {
            "total_time_s": self.stats.elapsed_time,
            "slices_processed": self.stats.processed_slices,
            "slices_per_second": self.stats.slices_per_second,
            "average_slice_time_s": sum(times) / len(times) if times else 0.0,
            "max_slice_time_s": max(times) if times else 0.0,
            "average_attempts": sum(attempts) / len(attempts) if attempts else 0.0,
            "failed_slices": sorted(self._failed),
        }
