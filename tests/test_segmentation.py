"""Tests for seam-based segmentation."""

import numpy as np
import pytest

from sliceflow.config import SegmentationConfig
from sliceflow.examples import generate_test_strip, gutter_mask
from sliceflow.segmentation import SegmentationEngine


def white(height, width=60):
    return np.full((height, width, 3), 255, dtype=np.uint8)


def assert_valid_cover(boundaries, height, max_h, min_h):
    assert boundaries[0].start_y == 0
    for prev, nxt in zip(boundaries, boundaries[1:]):
        assert nxt.start_y == prev.end_y
    assert sum(b.height for b in boundaries) == height
    assert all(b.height <= max_h for b in boundaries)
    assert all(b.height >= min_h for b in boundaries[:-1])
    assert all(b.height > 0 for b in boundaries)


class TestFindCut:
    """Test single cut selection."""

    def test_remainder_returned_when_it_fits(self):
        engine = SegmentationEngine(SegmentationConfig(max_slice_height=100, min_slice_height=50))
        assert engine.find_cut(white(260), current_y=180) == 80

    def test_uniform_image_cuts_late(self):
        """With equal energies the penalty pushes the cut to the last scanned row."""
        engine = SegmentationEngine(
            SegmentationConfig(max_slice_height=100, min_slice_height=50, row_stride=4)
        )
        # window offsets 0..48 step 4; last scanned row is offset 48
        assert engine.find_cut(white(500), current_y=0) == 98

    def test_quiet_row_beats_penalty(self):
        """A quiet gutter early in the window wins over busy rows later on."""
        image = np.full((500, 60, 3), 128, dtype=np.uint8)
        image[56:60] = 255
        engine = SegmentationEngine(
            SegmentationConfig(max_slice_height=100, min_slice_height=50, row_stride=4)
        )
        assert engine.find_cut(image, current_y=0) == 58

    def test_zero_penalty_keeps_first_minimum(self):
        engine = SegmentationEngine(
            SegmentationConfig(
                max_slice_height=100, min_slice_height=50, row_stride=4, penalty_weight=0
            )
        )
        assert engine.find_cut(white(500), current_y=0) == 50

    def test_cut_relative_to_current_row(self):
        image = np.full((1000, 60, 3), 128, dtype=np.uint8)
        image[470:474] = 0  # solid ink is quiet too
        engine = SegmentationEngine(
            SegmentationConfig(max_slice_height=100, min_slice_height=50, row_stride=4)
        )
        assert engine.find_cut(image, current_y=400) == 70


class TestSegment:
    """Test full segmentation."""

    def test_short_image_single_slice(self):
        """H <= max yields one boundary covering the image."""
        engine = SegmentationEngine()
        boundaries = engine.segment(white(3000))
        assert len(boundaries) == 1
        assert (boundaries[0].start_y, boundaries[0].height) == (0, 3000)

    def test_short_image_skips_scan(self, monkeypatch):
        engine = SegmentationEngine()

        def fail(*args, **kwargs):
            raise AssertionError("scan should not run")

        monkeypatch.setattr(engine.scanner, "score_window", fail)
        assert len(engine.segment(white(1200))) == 1

    def test_two_slices_for_5000(self):
        """H=5000, M=3000, m=1500 gives exactly two boundaries."""
        engine = SegmentationEngine(SegmentationConfig(max_slice_height=3000, min_slice_height=1500))
        boundaries = engine.segment(white(5000, width=30))
        assert len(boundaries) == 2
        cut = boundaries[0].height
        assert 1500 <= cut <= 3000
        assert boundaries[1].start_y == cut
        assert boundaries[1].height == 5000 - cut

    @pytest.mark.parametrize("height", [101, 150, 151, 299, 777, 1234])
    def test_cover_invariants(self, height):
        rng = np.random.default_rng(height)
        image = rng.integers(0, 256, size=(height, 40, 3), dtype=np.uint8)
        engine = SegmentationEngine(
            SegmentationConfig(max_slice_height=100, min_slice_height=50, row_stride=2, pixel_stride=3)
        )
        boundaries = engine.segment(image)
        assert_valid_cover(boundaries, height, 100, 50)

    def test_cuts_land_in_gutters(self):
        """On a strip of noisy panels the seams fall on white gutters."""
        image = generate_test_strip(height=6000, width=300, panel_height=700, gutter_height=120)
        mask = gutter_mask(6000, panel_height=700, gutter_height=120)
        engine = SegmentationEngine()
        boundaries = engine.segment(image)
        assert_valid_cover(boundaries, 6000, 3000, 1500)
        for boundary in boundaries[1:]:
            assert mask[boundary.start_y]

    def test_grayscale_image(self):
        image = np.full((450, 30), 255, dtype=np.uint8)
        engine = SegmentationEngine(SegmentationConfig(max_slice_height=200, min_slice_height=100))
        assert_valid_cover(engine.segment(image), 450, 200, 100)

    def test_invalid_image(self):
        with pytest.raises(ValueError, match="positive width and height"):
            SegmentationEngine().segment(np.zeros((0, 10, 3), dtype=np.uint8))


class TestConfiguration:
    """Test startup validation."""

    def test_default_config(self):
        engine = SegmentationEngine()
        assert engine.config.max_slice_height == 3000
        assert engine.config.min_slice_height == 1500
        assert engine.scanner.row_stride == 4
        assert engine.scanner.pixel_stride == 10

    def test_degenerate_bounds_rejected(self):
        with pytest.raises(ValueError, match="must be less than"):
            SegmentationEngine(SegmentationConfig(max_slice_height=100, min_slice_height=100))

    def test_narrow_window_warning_points_at_caller(self):
        config = SegmentationConfig(max_slice_height=100, min_slice_height=95)
        with pytest.warns(UserWarning, match="little room") as record:
            SegmentationEngine(config)
        assert record[0].filename == __file__


class TestPreview:
    """Test the matplotlib seam overlay."""

    def test_preview_draws_cuts(self, monkeypatch):
        matplotlib = pytest.importorskip("matplotlib")
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        lines = []
        monkeypatch.setattr(plt, "show", lambda: lines.extend(plt.gca().get_lines()))
        engine = SegmentationEngine(SegmentationConfig(max_slice_height=300, min_slice_height=150))
        image = white(700)
        engine.preview(image)
        assert len(lines) == len(engine.segment(image)) - 1
