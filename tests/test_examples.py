"""Tests for synthetic inputs."""

import pytest

from sliceflow.core import SliceBoundary, SliceChunk
from sliceflow.examples import ScriptedClient, generate_test_strip, gutter_mask


def chunk(index):
    return SliceChunk(index=index, data=b"", mime_type="image/jpeg", boundary=SliceBoundary(0, 1))


class TestGenerateTestStrip:
    def test_shape_and_dtype(self):
        image = generate_test_strip(height=900, width=50)
        assert image.shape == (900, 50, 3)
        assert image.dtype.name == "uint8"

    def test_gutters_are_white(self):
        image = generate_test_strip(height=1000, width=20, panel_height=100, gutter_height=10)
        mask = gutter_mask(1000, panel_height=100, gutter_height=10)
        assert (image[mask] == 255).all()
        assert image[~mask].max() < 192

    def test_deterministic(self):
        a = generate_test_strip(height=100, width=10, seed=3)
        b = generate_test_strip(height=100, width=10, seed=3)
        assert (a == b).all()

    def test_invalid_shape(self):
        with pytest.raises(ValueError, match="positive"):
            generate_test_strip(height=0)


class TestScriptedClient:
    def test_responses(self):
        client = ScriptedClient(
            responses={(0, "a"): [{"text": "hi"}], (1, "a"): TimeoutError("slow")},
            default="raw",
        )
        assert client.extract(chunk(0), "a") == '[{"text": "hi"}]'
        assert client.extract(chunk(0), "b") == "raw"
        with pytest.raises(TimeoutError):
            client.extract(chunk(1), "a")

    def test_call_log(self):
        client = ScriptedClient()
        client.extract(chunk(0), "a")
        client.extract(chunk(1), "b")
        client.extract(chunk(0), "c")
        assert client.calls_for(0) == ["a", "c"]
        assert client.calls == [(0, "a"), (1, "b"), (0, "c")]
