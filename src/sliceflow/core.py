"""Core data structures for slice-based text extraction.

This module defines the value types passed between pipeline stages:
- SliceBoundary: a horizontal band of the source image
- SliceChunk: an encoded, self-contained slice with its ordinal index
- ExtractionRecord / TextCategory: one piece of text returned by the service
- Success / Retryable: the result of a single extraction attempt
- DispatchOutcome: the final result of all attempts for one slice
- ExtractionReport: the aggregated text of a whole run
"""

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

Image = np.ndarray


class TextCategory(str, Enum):
    """Categories the extraction service may assign to a text block."""

    SPEECH = "speech"
    THOUGHT = "thought"
    BOX = "box"
    NARRATION = "narration"
    SMALL_TEXT = "small_text"
    SFX = "sfx"
    SYSTEM = "system"
    SCREAM = "scream"
    LINKED = "linked"

    @classmethod
    def lookup(cls, value: str) -> "TextCategory | None":
        """Return the matching category, ignoring case and surrounding space."""
        key = value.strip().lower()
        for category in cls:
            if category.value == key:
                return category
        return None


DEFAULT_CATEGORY = TextCategory.SPEECH.value


@dataclass(frozen=True)
class SliceBoundary:
    """Horizontal band [start_y, start_y + height) of the source image."""

    start_y: int
    height: int

    @property
    def end_y(self) -> int:
        return self.start_y + self.height

    def get_slices(self) -> tuple[slice, slice]:
        """Numpy slices selecting this band (rows, all columns)."""
        return (slice(self.start_y, self.end_y), slice(None))

    def crop(self, image: Image) -> Image:
        return image[self.get_slices()]


@dataclass(frozen=True)
class SliceChunk:
    """Encoded slice ready to be sent to the extraction service."""

    index: int
    data: bytes
    mime_type: str
    boundary: SliceBoundary

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ExtractionRecord:
    """A single text block as returned by the extraction service."""

    text: str
    category: str = DEFAULT_CATEGORY

    @property
    def known_category(self) -> TextCategory | None:
        return TextCategory.lookup(self.category)


@dataclass(frozen=True)
class Success:
    """Attempt succeeded with a (possibly empty) list of records."""

    records: tuple[ExtractionRecord, ...]


@dataclass(frozen=True)
class Retryable:
    """Attempt failed; the next credential may be tried."""

    error: BaseException


AttemptResult = Success | Retryable


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of the failover loop for one slice.

    A succeeded outcome carries the records of the single successful
    attempt. An exhausted outcome always carries no records.
    """

    index: int
    status: OutcomeStatus
    records: tuple[ExtractionRecord, ...] = ()
    attempts: int = 0
    credential_index: int | None = None
    errors: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def succeeded(
        cls,
        index: int,
        records: tuple[ExtractionRecord, ...],
        attempts: int,
        credential_index: int,
        errors: tuple[str, ...] = (),
    ) -> "DispatchOutcome":
        return cls(
            index=index,
            status=OutcomeStatus.SUCCEEDED,
            records=tuple(records),
            attempts=attempts,
            credential_index=credential_index,
            errors=tuple(errors),
        )

    @classmethod
    def exhausted(cls, index: int, attempts: int, errors: tuple[str, ...]) -> "DispatchOutcome":
        return cls(
            index=index,
            status=OutcomeStatus.EXHAUSTED,
            records=(),
            attempts=attempts,
            credential_index=None,
            errors=tuple(errors),
        )

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.EXHAUSTED


def as_rgb_view(image: Image) -> Image:
    """Return an (H, W, 3) view of the image, broadcasting grayscale input."""
    if image.ndim == 3 and image.shape[2] == 1:
        image = image[:, :, 0]
    if image.ndim == 2:
        return np.repeat(image[:, :, np.newaxis], 3, axis=2)
    if image.ndim == 3 and image.shape[2] >= 3:
        return image[:, :, :3]
    raise ValueError(f"Unsupported image shape {image.shape}, expected (H, W) or (H, W, C>=3)")


@dataclass(frozen=True)
class ExtractionReport:
    """Final result of a run: the ordered text plus what produced it."""

    text: str
    boundaries: tuple[SliceBoundary, ...]
    outcomes: tuple[DispatchOutcome, ...]

    @property
    def failed_slices(self) -> list[int]:
        return [o.index for o in self.outcomes if o.failed]

    @property
    def record_count(self) -> int:
        return sum(len(o.records) for o in self.outcomes)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

    def write(self, path) -> None:
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(self.text)
