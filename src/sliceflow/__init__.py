"""SliceFlow: reading-order text extraction from tall comic images."""

from sliceflow.callback import (
    CompositeCallback,
    MetricsCallback,
    ProcessingStats,
    ProgressCallback,
    SliceFlowCallback,
)
from sliceflow.client import ExtractionError, GeminiExtractionClient, parse_records
from sliceflow.config import (
    ConfigurationError,
    DispatchConfig,
    EncoderConfig,
    SegmentationConfig,
    SliceFlowConfig,
    load_credentials,
)
from sliceflow.core import (
    DispatchOutcome,
    ExtractionRecord,
    ExtractionReport,
    SliceBoundary,
    SliceChunk,
    TextCategory,
)
from sliceflow.backends import ImageLoadError, load_image
from sliceflow.credentials import CredentialPool
from sliceflow.dispatch import ResilientDispatcher
from sliceflow.encoding import SliceEncoder
from sliceflow.energy import PixelEnergyScanner
from sliceflow.formatting import aggregate, format_text
from sliceflow.model import SliceFlow
from sliceflow.segmentation import SegmentationEngine

__version__ = "0.1.0"

__all__ = [
    "CompositeCallback",
    "ConfigurationError",
    "CredentialPool",
    "DispatchConfig",
    "DispatchOutcome",
    "EncoderConfig",
    "ExtractionError",
    "ExtractionRecord",
    "ExtractionReport",
    "GeminiExtractionClient",
    "ImageLoadError",
    "MetricsCallback",
    "PixelEnergyScanner",
    "ProcessingStats",
    "ProgressCallback",
    "ResilientDispatcher",
    "SegmentationConfig",
    "SegmentationEngine",
    "SliceBoundary",
    "SliceChunk",
    "SliceEncoder",
    "SliceFlow",
    "SliceFlowCallback",
    "SliceFlowConfig",
    "TextCategory",
    "aggregate",
    "format_text",
    "load_credentials",
    "load_image",
    "parse_records",
]
