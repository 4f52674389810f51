"""Image sources: turn a path, URL, raw bytes or array into an image buffer."""

from pathlib import Path

import cv2
import numpy as np
import requests

from sliceflow.utils import validate_image

DOWNLOAD_TIMEOUT_S = 60
_CHUNK_SIZE = 1024 * 256


class ImageLoadError(ValueError):
    """Raised when the input cannot be turned into a decodable raster."""


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def download_bytes(url: str, timeout: float = DOWNLOAD_TIMEOUT_S) -> bytes:
    """Download ``url`` into memory."""
    try:
        resp = requests.get(url, timeout=timeout, stream=True, allow_redirects=True)
    except requests.RequestException as e:
        raise ImageLoadError(f"Could not download {url}: {e}") from e
    with resp:
        if resp.status_code >= 400:
            raise ImageLoadError(f"Could not download {url}: upstream {resp.status_code}")
        return b"".join(chunk for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE) if chunk)


def to_uint8(image: np.ndarray) -> np.ndarray:
    """Rescale a non-uint8 buffer so its peak maps to 255.

    Seam energy assumes 0-255 channel values. uint8 input is returned
    unchanged.
    """
    if image.dtype == np.uint8:
        return image
    if not (np.issubdtype(image.dtype, np.integer) or np.issubdtype(image.dtype, np.floating)):
        raise ImageLoadError(f"Unsupported image dtype: {image.dtype}")
    values = np.abs(np.nan_to_num(image.astype(np.float64)))
    peak = float(values.max())
    scale = 255.0 / peak if peak > 0 else 1.0
    return np.clip(np.rint(values * scale), 0, 255).astype(np.uint8)


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes (PNG, JPEG, WebP, ...) into a BGR(A) array."""
    if not data:
        raise ImageLoadError("Image data is empty")
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ImageLoadError("Data is not a decodable image")
    # 16-bit PNG/TIFF
    image = to_uint8(image)
    if image.ndim == 3 and image.shape[2] == 2:
        # gray + alpha
        image = image[:, :, 0]
    return image


def load_image(source, timeout: float = DOWNLOAD_TIMEOUT_S) -> np.ndarray:
    """Resolve ``source`` to an image buffer.

    Parameters
    ----------
    source : str | Path | bytes | np.ndarray
        Filesystem path, http(s) URL, encoded image bytes or an array
        already in memory (returned as is after validation when uint8,
        otherwise rescaled to uint8).
    timeout : float, default=60
        Download timeout for URLs, in seconds.

    Returns
    -------
    np.ndarray
        Image of shape (H, W) or (H, W, C) with positive H and W.
    """
    if isinstance(source, np.ndarray):
        image = source
    elif isinstance(source, (bytes, bytearray, memoryview)):
        image = decode_image(bytes(source))
    elif isinstance(source, (str, Path)):
        text = str(source)
        if _is_url(text):
            image = decode_image(download_bytes(text, timeout=timeout))
        else:
            path = Path(text)
            if not path.is_file():
                raise ImageLoadError(f"Image file not found: {path}")
            image = decode_image(path.read_bytes())
    else:
        raise TypeError(f"Unsupported image source type: {type(source).__name__}")

    try:
        validate_image(image)
    except (TypeError, ValueError) as e:
        raise ImageLoadError(str(e)) from e
    return to_uint8(image)
