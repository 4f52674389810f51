"""Slice-based text extraction pipeline.

This module implements SliceFlow's main processing pipeline:
- SliceFlow: main processor class with configure/run interface
- Segmentation: cut the image at quiet seams within height bounds
- Dispatch: extract each slice with failover across API keys
- Aggregation: reassemble records in reading order
"""

import time
from collections.abc import Iterable
from typing import Any

from sliceflow.backends import load_image
from sliceflow.callback import CompositeCallback, ProcessingStats, SliceFlowCallback
from sliceflow.client import ExtractionClient, GeminiExtractionClient
from sliceflow.config import SliceFlowConfig
from sliceflow.core import ExtractionReport
from sliceflow.credentials import CredentialPool
from sliceflow.dispatch import ResilientDispatcher
from sliceflow.encoding import SliceEncoder
from sliceflow.formatting import aggregate
from sliceflow.segmentation import SegmentationEngine


class SliceFlow:
    """Extracts reading-order text from tall comic images.

    Examples
    --------
    >>> processor = SliceFlow()
    >>> processor.configure()  # Gemini client built from the config
    >>> report = processor.run("chapter_01.png", credentials=["key-a", "key-b"])
    >>> report.write("chapter_01.png.txt")

    >>> # Any object with extract(chunk, credential) -> str can stand in
    >>> processor.configure(client=my_client)
    """

    def __init__(self, config: SliceFlowConfig | None = None, name: str = "SliceFlow") -> None:
        """Initialize SliceFlow processor.

        Parameters
        ----------
        config : SliceFlowConfig, optional
            Segmentation, encoding and dispatch settings. Defaults apply when omitted.
        name : str, default="SliceFlow"
            Name of the processor for logging/debugging
        """
        self.config = config or SliceFlowConfig()
        self.name = name
        self.segmenter = SegmentationEngine(self.config.segmentation)
        self.encoder = SliceEncoder(self.config.encoder)
        self._dispatcher: ResilientDispatcher | None = None
        self._configured = False

    def configure(self, client: ExtractionClient | None = None) -> None:
        """Configure the extraction client.

        Parameters
        ----------
        client : ExtractionClient, optional
            Object with ``extract(chunk, credential) -> str``. When omitted a
            ``GeminiExtractionClient`` is built from ``config.dispatch``.
        """
        if client is None:
            dispatch = self.config.dispatch
            client = GeminiExtractionClient(
                model=dispatch.model,
                prompt=dispatch.prompt,
                request_timeout_s=dispatch.request_timeout_s,
            )
        self._dispatcher = ResilientDispatcher(client, max_workers=self.config.dispatch.max_workers)
        self._configured = True

    @staticmethod
    def _as_pool(credentials: CredentialPool | Iterable[str]) -> CredentialPool:
        if isinstance(credentials, CredentialPool):
            return credentials
        if isinstance(credentials, str):
            raise TypeError("credentials must be a list of keys, not a single string")
        return CredentialPool(credentials)

    def run(
        self,
        data: Any,
        credentials: CredentialPool | Iterable[str],
        callbacks: list[SliceFlowCallback] | None = None,
    ) -> ExtractionReport:
        """Run the pipeline on one image.

        Parameters
        ----------
        data : Any
            Image path, URL, encoded bytes or np.ndarray
        credentials : CredentialPool | Iterable[str]
            API keys, in rotation order
        callbacks : list[SliceFlowCallback], optional
            Callbacks for progress and failure reporting

        Returns
        -------
        ExtractionReport
            Ordered text and per-slice outcomes. Slices that failed on every
            key contribute no text but do not fail the run.
        """
        if not self._configured:
            raise RuntimeError(
                f"Processor '{self.name}' must be configured before use. "
                f"Call processor.configure()"
            )

        # configuration and input errors abort before any slice is dispatched
        pool = self._as_pool(credentials)
        image = load_image(data)

        callback = CompositeCallback(callbacks or [])
        stats = ProcessingStats()
        stats.image_shape = tuple(image.shape)

        try:
            stats.start_time = time.time()
            callback.on_processing_start(stats)

            boundaries = self.segmenter.segment(image)
            callback.on_segmentation_end(boundaries)

            chunks = self.encoder.encode_all(image, boundaries)
            outcomes = self._dispatcher.process_all(chunks, pool, callbacks=[callback], stats=stats)

            report = ExtractionReport(
                text=aggregate(outcomes),
                boundaries=tuple(boundaries),
                outcomes=tuple(outcomes),
            )

            stats.end_time = time.time()
            callback.on_processing_end(stats)
            return report

        except Exception as e:
            stats.end_time = time.time()
            callback.on_processing_error(e, stats)
            raise

    def summary(self) -> None:
        """Print processor configuration summary."""
        seg = self.config.segmentation
        dispatch = self.config.dispatch
        print(f"SliceFlow Processor: {self.name}")
        print("=" * 50)
        print(f"Slice height:   {seg.min_slice_height}-{seg.max_slice_height}px")
        print(f"Scan strides:   rows={seg.row_stride}, pixels={seg.pixel_stride}")
        print(f"Penalty weight: {seg.penalty_weight}")
        print(f"Encoding:       {self.config.encoder.format} (quality {self.config.encoder.quality})")
        print(f"Model:          {dispatch.model}")
        print(f"Workers:        {dispatch.max_workers}")
        print(f"Configured:     {self._configured}")
        if self._dispatcher is not None:
            print(f"Client:         {type(self._dispatcher.client).__name__}")
        print("=" * 50)
