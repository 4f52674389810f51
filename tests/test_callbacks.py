"""Tests for the callback system."""

import time
from unittest.mock import Mock

from sliceflow.callback import (
    CompositeCallback,
    MetricsCallback,
    ProcessingStats,
    ProgressCallback,
    SliceFlowCallback,
)
from sliceflow.core import DispatchOutcome, ExtractionRecord, SliceBoundary, SliceChunk


def make_chunk(index=0):
    return SliceChunk(index=index, data=b"", mime_type="image/jpeg", boundary=SliceBoundary(0, 10))


def ok(index=0, n=1):
    return DispatchOutcome.succeeded(index, tuple(ExtractionRecord("t") for _ in range(n)), 1, 0)


class TestProcessingStats:
    """Test ProcessingStats container."""

    def test_initialization(self):
        """Test stats initialization."""
        stats = ProcessingStats()
        assert stats.start_time is None
        assert stats.end_time is None
        assert stats.total_slices == 0
        assert stats.processed_slices == 0

    def test_elapsed_time_calculation(self):
        stats = ProcessingStats()
        stats.start_time = 1000.0
        stats.end_time = 1005.5
        assert stats.elapsed_time == 5.5

    def test_slices_per_second(self):
        stats = ProcessingStats()
        stats.start_time = 1000.0
        stats.end_time = 1010.0
        stats.processed_slices = 5
        assert stats.slices_per_second == 0.5

    def test_record_outcome(self):
        stats = ProcessingStats()
        stats.record_outcome(ok(0, n=3))
        stats.record_outcome(DispatchOutcome.exhausted(1, 2, ("a", "b")))
        assert stats.processed_slices == 2
        assert stats.failed_slices == 1
        assert stats.total_attempts == 3
        assert stats.record_count == 3


class TestSliceFlowCallback:
    """Test base callback class."""

    def test_all_methods_optional(self):
        callback = SliceFlowCallback()
        stats = ProcessingStats()
        callback.on_processing_start(stats)
        callback.on_processing_end(stats)
        callback.on_processing_error(Exception("test"), stats)
        callback.on_segmentation_end([SliceBoundary(0, 10)])
        callback.on_slice_start(make_chunk(), 1)
        callback.on_attempt_failed(make_chunk(), 0, "...abcd", RuntimeError("x"))
        callback.on_slice_end(ok(), 1)
        callback.on_slice_failed(DispatchOutcome.exhausted(0, 1, ("x",)))


class TestProgressCallback:
    """Test progress output."""

    def test_start_message(self, capsys):
        callback = ProgressCallback(verbose=True, show_rate=False)
        stats = ProcessingStats()
        stats.image_shape = (5000, 800, 3)
        callback.on_processing_start(stats)
        assert "Starting processing image of shape (5000, 800, 3)" in capsys.readouterr().out

    def test_failover_messages_mask_keys(self, capsys):
        callback = ProgressCallback(verbose=True)
        callback.on_attempt_failed(make_chunk(2), 0, "...wxyz", ConnectionError("reset"))
        callback.on_slice_failed(DispatchOutcome.exhausted(2, 3, ("a", "b", "c")))
        out = capsys.readouterr().out
        assert "Key ...wxyz failed on slice 3" in out
        assert "Switching keys" in out
        assert "Slice 3 failed with all 3 keys" in out

    def test_rate_display(self, capsys):
        callback = ProgressCallback(verbose=True, show_rate=True)
        callback.on_processing_start(ProcessingStats())
        time.sleep(0.01)
        callback.on_slice_end(ok(), 4)
        assert "slices/sec" in capsys.readouterr().out

    def test_silent_mode(self, capsys):
        callback = ProgressCallback(verbose=False)
        stats = ProcessingStats()
        callback.on_processing_start(stats)
        callback.on_segmentation_end([SliceBoundary(0, 10)])
        callback.on_slice_end(ok(), 1)
        callback.on_processing_end(stats)
        assert capsys.readouterr().out == ""


class TestCompositeCallback:
    """Test composite callback fan-out."""

    def test_method_delegation(self):
        mock1 = Mock(spec=SliceFlowCallback)
        mock2 = Mock(spec=SliceFlowCallback)
        composite = CompositeCallback([mock1, mock2])

        stats = ProcessingStats()
        composite.on_processing_start(stats)
        mock1.on_processing_start.assert_called_once_with(stats)
        mock2.on_processing_start.assert_called_once_with(stats)

        outcome = ok()
        composite.on_slice_end(outcome, 3)
        mock2.on_slice_end.assert_called_once_with(outcome, 3)

    def test_error_handling_in_callbacks(self, capsys):
        failing = Mock(spec=SliceFlowCallback)
        failing.on_slice_failed.side_effect = Exception("Callback error")
        working = Mock(spec=SliceFlowCallback)
        composite = CompositeCallback([failing, working])

        composite.on_slice_failed(DispatchOutcome.exhausted(0, 1, ("x",)))

        working.on_slice_failed.assert_called_once()
        assert "Callback error" in capsys.readouterr().out


class TestMetricsCallback:
    """Test metrics collection."""

    def test_timing_collection(self):
        callback = MetricsCallback()
        callback.on_slice_start(make_chunk(0), 1)
        time.sleep(0.01)
        callback.on_slice_end(ok(0), 1)
        metrics = callback.get_detailed_metrics()
        assert metrics["average_slice_time_s"] > 0
        assert metrics["average_attempts"] == 1.0

    def test_failed_slices_listed(self):
        callback = MetricsCallback()
        callback.on_slice_failed(DispatchOutcome.exhausted(3, 2, ("a", "b")))
        callback.on_slice_failed(DispatchOutcome.exhausted(1, 2, ("a", "b")))
        assert callback.get_detailed_metrics()["failed_slices"] == [1, 3]

    def test_metrics_data_export(self):
        callback = MetricsCallback()
        stats = ProcessingStats()
        stats.start_time = 1000.0
        stats.end_time = 1005.0
        stats.processed_slices = 10
        callback.on_processing_end(stats)

        metrics = callback.get_detailed_metrics()
        assert metrics["total_time_s"] == 5.0
        assert metrics["slices_processed"] == 10
        assert metrics["slices_per_second"] == 2.0
