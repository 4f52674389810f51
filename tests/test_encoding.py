"""Tests for slice encoding."""

import cv2
import numpy as np

from sliceflow.config import EncoderConfig
from sliceflow.core import SliceBoundary
from sliceflow.encoding import SliceEncoder


def gradient(height=120, width=40):
    column = np.linspace(0, 255, height, dtype=np.uint8)[:, np.newaxis, np.newaxis]
    return np.broadcast_to(column, (height, width, 3)).copy()


class TestSliceEncoder:
    """Test chunk creation."""

    def test_jpeg_chunk(self):
        encoder = SliceEncoder()
        chunk = encoder.encode(gradient(), SliceBoundary(20, 50), index=3)
        assert chunk.index == 3
        assert chunk.mime_type == "image/jpeg"
        assert chunk.data[:2] == b"\xff\xd8"
        assert chunk.boundary == SliceBoundary(20, 50)

    def test_chunk_is_self_contained(self):
        """Each chunk decodes on its own to the slice dimensions."""
        chunk = SliceEncoder().encode(gradient(), SliceBoundary(30, 45), index=0)
        decoded = cv2.imdecode(np.frombuffer(chunk.data, np.uint8), cv2.IMREAD_COLOR)
        assert decoded.shape == (45, 40, 3)

    def test_png_is_lossless(self):
        image = gradient()
        chunk = SliceEncoder(EncoderConfig(format="png")).encode(image, SliceBoundary(10, 30), 0)
        assert chunk.mime_type == "image/png"
        decoded = cv2.imdecode(np.frombuffer(chunk.data, np.uint8), cv2.IMREAD_COLOR)
        assert np.array_equal(decoded, image[10:40])

    def test_encode_all_preserves_order(self):
        boundaries = [SliceBoundary(0, 40), SliceBoundary(40, 50), SliceBoundary(90, 30)]
        chunks = SliceEncoder().encode_all(gradient(), boundaries)
        assert [c.index for c in chunks] == [0, 1, 2]
        assert [c.boundary for c in chunks] == boundaries

    def test_grayscale_and_alpha(self):
        encoder = SliceEncoder()
        gray = np.full((20, 10), 200, dtype=np.uint8)
        assert encoder.encode(gray, SliceBoundary(0, 20), 0).size_bytes > 0
        bgra = np.full((20, 10, 4), 200, dtype=np.uint8)
        assert encoder.encode(bgra, SliceBoundary(0, 20), 0).size_bytes > 0
