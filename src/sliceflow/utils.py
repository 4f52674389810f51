"""Validation and estimation helpers."""

import math
import warnings

import numpy as np


def validate_slice_bounds(
    max_slice_height: int, min_slice_height: int, stacklevel: int = 2
) -> None:
    """Validate slice height bounds.

    ``stacklevel`` is forwarded to the narrow-window warning so wrappers can
    attribute it to their own caller.
    """
    if max_slice_height <= 0 or min_slice_height <= 0:
        raise ValueError(
            f"Slice heights must be positive, got max={max_slice_height}, min={min_slice_height}"
        )
    if min_slice_height >= max_slice_height:
        raise ValueError(
            f"min_slice_height must be less than max_slice_height, "
            f"got {min_slice_height} >= {max_slice_height}"
        )
    if max_slice_height - min_slice_height < 16:
        warnings.warn(
            f"Seam search window of {max_slice_height - min_slice_height}px leaves "
            "little room to avoid cutting through text",
            UserWarning,
            stacklevel=stacklevel,
        )


def validate_image(image: np.ndarray) -> tuple[int, int]:
    """Validate an image buffer and return its (height, width)."""
    if not isinstance(image, np.ndarray):
        raise TypeError(f"Expected np.ndarray, got {type(image).__name__}")
    if image.ndim not in (2, 3):
        raise ValueError(f"Image must be 2D or 3D, got shape {image.shape}")
    if image.ndim == 3 and image.shape[2] not in (1, 3, 4):
        raise ValueError(f"Image must have 1, 3 or 4 channels, got {image.shape[2]}")
    height, width = image.shape[:2]
    if height == 0 or width == 0:
        raise ValueError(f"Image must have positive width and height, got {image.shape[:2]}")
    return height, width


def estimate_slice_count(
    image_height: int, max_slice_height: int, min_slice_height: int
) -> tuple[int, int]:
    """Bounds on the number of slices (and service calls) for an image.

    Returns
    -------
    tuple[int, int]
        (fewest, most) slices the segmentation can produce.
    """
    validate_slice_bounds(max_slice_height, min_slice_height)
    if image_height <= 0:
        return (0, 0)
    if image_height <= max_slice_height:
        return (1, 1)
    fewest = math.ceil(image_height / max_slice_height)
    # every non-final slice is at least min_slice_height tall and the final
    # slice is emitted once at most max_slice_height remain
    most = math.ceil(max(image_height - max_slice_height, 0) / min_slice_height) + 1
    return (fewest, max(fewest, most))
