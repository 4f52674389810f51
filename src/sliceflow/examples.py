"""Synthetic inputs for demos and tests.

- generate_test_strip: tall image of noisy panels separated by white gutters
- ScriptedClient: extraction client replaying canned responses per (slice, key)
"""

import json
import threading

import numpy as np

from sliceflow.core import SliceChunk


def generate_test_strip(
    height: int = 5000,
    width: int = 400,
    panel_height: int = 700,
    gutter_height: int = 120,
    seed: int = 0,
) -> np.ndarray:
    """Create a webtoon-like strip.

    Panels are filled with uniform mid-tone noise (high energy) and
    separated by pure white gutters (zero energy). The pattern starts with
    a panel at row 0 and repeats every ``panel_height + gutter_height`` rows.

    Returns
    -------
    np.ndarray
        uint8 array of shape (height, width, 3)
    """
    if height <= 0 or width <= 0:
        raise ValueError(f"Strip shape must be positive, got {(height, width)}")
    if panel_height <= 0 or gutter_height < 0:
        raise ValueError("panel_height must be positive and gutter_height non-negative")

    rng = np.random.default_rng(seed)
    image = rng.integers(64, 192, size=(height, width, 3), dtype=np.uint8)
    period = panel_height + gutter_height
    rows = np.arange(height)
    image[(rows % period) >= panel_height] = 255
    return image


def gutter_mask(height: int, panel_height: int = 700, gutter_height: int = 120) -> np.ndarray:
    """Boolean mask of the gutter rows of ``generate_test_strip``."""
    rows = np.arange(height)
    return (rows % (panel_height + gutter_height)) >= panel_height


class ScriptedClient:
    """Extraction client with canned responses.

    Parameters
    ----------
    responses : dict[tuple[int, str], str | BaseException | list], optional
        Response per (chunk index, credential). Strings are returned as is,
        lists are JSON encoded, exceptions are raised.
    default : str | BaseException | list, default="[]"
        Response for pairs not in ``responses``.
    """

    def __init__(self, responses=None, default="[]") -> None:
        self.responses = dict(responses or {})
        self.default = default
        self.calls: list[tuple[int, str]] = []
        self._lock = threading.Lock()

    def extract(self, chunk: SliceChunk, credential: str) -> str:
        with self._lock:
            self.calls.append((chunk.index, credential))
        response = self.responses.get((chunk.index, credential), self.default)
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, list):
            return json.dumps(response)
        return response

    def calls_for(self, chunk_index: int) -> list[str]:
        """Credentials tried for ``chunk_index``, in order."""
        return [credential for index, credential in self.calls if index == chunk_index]
