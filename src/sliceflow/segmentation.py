"""Seam-based segmentation of tall images into height-bounded slices."""

import numpy as np

from sliceflow.config import SegmentationConfig
from sliceflow.core import Image, SliceBoundary
from sliceflow.energy import PixelEnergyScanner
from sliceflow.utils import validate_image, validate_slice_bounds


class SegmentationEngine:
    """Cuts an image into contiguous slices at low-energy rows.

    Every slice is at most ``max_slice_height`` tall and, except for the
    final remainder, at least ``min_slice_height`` tall. Within each search
    window the raw row energy is penalised by the distance to the window's
    end so that, between similar seams, the later one wins and fewer
    slices are produced.

    Examples
    --------
    >>> engine = SegmentationEngine(SegmentationConfig(max_slice_height=3000, min_slice_height=1500))
    >>> boundaries = engine.segment(image)
    """

    def __init__(self, config: SegmentationConfig | None = None) -> None:
        self.config = config or SegmentationConfig()
        # bounds are checked by the config; this adds the narrow-window warning
        validate_slice_bounds(
            self.config.max_slice_height, self.config.min_slice_height, stacklevel=3
        )
        self.scanner = PixelEnergyScanner(
            row_stride=self.config.row_stride, pixel_stride=self.config.pixel_stride
        )

    def find_cut(self, image: Image, current_y: int) -> int:
        """Height of the slice starting at ``current_y``."""
        max_h = self.config.max_slice_height
        min_h = self.config.min_slice_height

        remaining = image.shape[0] - current_y
        if remaining <= max_h:
            return remaining

        window_height = max_h - min_h
        offsets, energies = self.scanner.score_window(
            image, current_y + min_h, current_y + max_h
        )
        if offsets.size == 0:
            return max_h

        penalties = (window_height - offsets) * self.config.penalty_weight
        scores = energies + penalties
        # argmin returns the first minimum, so ties keep the earlier row
        best = int(np.argmin(scores))
        return min_h + int(offsets[best])

    def segment(self, image: Image) -> list[SliceBoundary]:
        """Split ``image`` into slices covering every row exactly once.

        Parameters
        ----------
        image : np.ndarray
            Image buffer of shape (H, W) or (H, W, C)

        Returns
        -------
        list[SliceBoundary]
            Boundaries ordered top to bottom
        """
        height, _ = validate_image(image)

        if height <= self.config.max_slice_height:
            return [SliceBoundary(start_y=0, height=height)]

        boundaries: list[SliceBoundary] = []
        current_y = 0
        while current_y < height:
            slice_height = self.find_cut(image, current_y)
            boundaries.append(SliceBoundary(start_y=current_y, height=slice_height))
            current_y += slice_height
        return boundaries

    def preview(self, image: Image, boundaries: list[SliceBoundary] | None = None) -> None:
        """Display the image with the chosen seams drawn over it."""
        import matplotlib.pyplot as plt

        if boundaries is None:
            boundaries = self.segment(image)

        display = image[:, :, 2::-1] if image.ndim == 3 and image.shape[2] >= 3 else image
        fig, ax = plt.subplots(figsize=(4, 12))
        ax.imshow(display, cmap="gray", aspect="auto")
        ax.axis("off")
        for boundary in boundaries[1:]:
            ax.axhline(boundary.start_y, color="red", linewidth=0.8)
        for i, boundary in enumerate(boundaries):
            ax.text(2, boundary.start_y + 20, f"#{i} ({boundary.height}px)", color="red", fontsize=6)
        plt.show()
        plt.close(fig)
