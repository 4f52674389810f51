"""Rasterisation of slice boundaries into transmittable image chunks."""

import cv2
import numpy as np

from sliceflow.config import EncoderConfig
from sliceflow.core import Image, SliceBoundary, SliceChunk

_MIME_TYPES = {"jpeg": "image/jpeg", "png": "image/png"}


class SliceEncoder:
    """Encodes each slice as an independent image file in memory."""

    def __init__(self, config: EncoderConfig | None = None) -> None:
        self.config = config or EncoderConfig()

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self.config.format]

    def _encode_params(self) -> tuple[str, list[int]]:
        if self.config.format == "png":
            return ".png", []
        return ".jpg", [cv2.IMWRITE_JPEG_QUALITY, self.config.quality]

    def encode(self, image: Image, boundary: SliceBoundary, index: int) -> SliceChunk:
        region = np.ascontiguousarray(boundary.crop(image))
        if region.ndim == 3 and region.shape[2] == 4 and self.config.format == "jpeg":
            region = cv2.cvtColor(region, cv2.COLOR_BGRA2BGR)
        ext, params = self._encode_params()
        ok, buffer = cv2.imencode(ext, region, params)
        if not ok:
            raise RuntimeError(f"Failed to encode slice {index} ({boundary.height}px) as {ext}")
        return SliceChunk(
            index=index, data=buffer.tobytes(), mime_type=self.mime_type, boundary=boundary
        )

    def encode_all(self, image: Image, boundaries: list[SliceBoundary]) -> list[SliceChunk]:
        """Encode every boundary, preserving order in ``SliceChunk.index``."""
        return [self.encode(image, boundary, i) for i, boundary in enumerate(boundaries)]
