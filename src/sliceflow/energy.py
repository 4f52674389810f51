"""Row energy heuristic used to locate quiet seams.

A pixel close to pure white (background) or pure black (solid ink) is
quiet. Anything in between, mid-tone art or anti-aliased text edges, is
busy. The energy of a row is the average, over sampled pixels, of the
pixel's distance to the nearest of the two extremes.
"""

import numpy as np

from sliceflow.core import Image, as_rgb_view


class PixelEnergyScanner:
    """Scores image rows by visual busyness. Lower is a better cut.

    Parameters
    ----------
    row_stride : int, default=4
        Only every ``row_stride``-th row of a window is evaluated.
    pixel_stride : int, default=10
        Only every ``pixel_stride``-th pixel of a row is sampled.
    """

    def __init__(self, row_stride: int = 4, pixel_stride: int = 10) -> None:
        if row_stride <= 0 or pixel_stride <= 0:
            raise ValueError(
                f"Strides must be positive, got row_stride={row_stride}, pixel_stride={pixel_stride}"
            )
        self.row_stride = row_stride
        self.pixel_stride = pixel_stride

    @staticmethod
    def _pixel_energy(pixels: np.ndarray) -> np.ndarray:
        """Per-pixel min(distance to white, distance to black) over the last axis."""
        values = pixels.astype(np.int32)
        dist_white = np.abs(255 - values).sum(axis=-1)
        dist_black = values.sum(axis=-1)
        return np.minimum(dist_white, dist_black)

    def score(self, image: Image, y: int, pixel_stride: int | None = None) -> float:
        """Energy of a single row ``y``."""
        stride = self.pixel_stride if pixel_stride is None else pixel_stride
        if stride <= 0:
            raise ValueError(f"Strides must be positive, got pixel_stride={stride}")
        height = image.shape[0]
        if not 0 <= y < height:
            raise IndexError(f"Row {y} outside image of height {height}")
        row = as_rgb_view(image[y : y + 1, ::stride])[0]
        return float(self._pixel_energy(row).mean())

    def score_window(self, image: Image, y0: int, y1: int) -> tuple[np.ndarray, np.ndarray]:
        """Energies of the subsampled rows of [y0, y1).

        Returns
        -------
        tuple[np.ndarray, np.ndarray]
            Row offsets relative to ``y0`` and the matching energies.
        """
        y0 = max(y0, 0)
        y1 = min(y1, image.shape[0])
        if y1 <= y0:
            return np.empty(0, dtype=np.int64), np.empty(0, dtype=np.float64)

        band = as_rgb_view(image[y0 : y1 : self.row_stride, :: self.pixel_stride])
        energies = self._pixel_energy(band).mean(axis=1)
        offsets = np.arange(0, y1 - y0, self.row_stride, dtype=np.int64)
        return offsets, energies.astype(np.float64)
