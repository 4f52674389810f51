#!/usr/bin/env python3
"""Basic usage example for SliceFlow on a synthetic webtoon strip.

This script demonstrates:
- Segmenting a tall image at white gutters
- Running the full pipeline with a scripted extraction client
- Swapping in the Gemini client when GEMINI_API_KEYS is set
"""

import os

import numpy as np

from sliceflow import SliceFlow, SliceFlowConfig
from sliceflow.config import SegmentationConfig
from sliceflow.examples import ScriptedClient, generate_test_strip, gutter_mask
from sliceflow.segmentation import SegmentationEngine
from sliceflow.utils import estimate_slice_count


def show_segmentation(image):
    """Print where the cuts land relative to the gutters."""
    engine = SegmentationEngine()
    boundaries = engine.segment(image)
    gutters = gutter_mask(image.shape[0])

    print(f"Image shape: {image.shape}")
    fewest, most = estimate_slice_count(image.shape[0], 3000, 1500)
    print(f"Slices: {len(boundaries)} (expected between {fewest} and {most})")
    for i, boundary in enumerate(boundaries[:-1]):
        where = "gutter" if gutters[boundary.end_y] else "panel"
        print(f"  cut {i}: y={boundary.end_y} (height {boundary.height}, lands in {where})")
    print(f"  last slice: y={boundaries[-1].start_y}..{boundaries[-1].end_y}")
    return boundaries


def run_scripted(image):
    """Run the whole pipeline offline with canned answers."""
    client = ScriptedClient(
        responses={
            (0, "demo-key-1"): [
                {"text": "Where are we?", "category": "speech"},
                {"text": "The city of towers.", "category": "narration"},
            ],
            (1, "demo-key-2"): ConnectionError("simulated network failure"),
            (1, "demo-key-1"): [{"text": "CRASH", "category": "sfx"}],
        },
        default=[{"text": "...", "category": "thought"}],
    )
    processor = SliceFlow(SliceFlowConfig(segmentation=SegmentationConfig()))
    processor.configure(client=client)
    processor.summary()

    report = processor.run(image, credentials=["demo-key-1", "demo-key-2"])
    print()
    print(report.text)
    print(f"Calls made: {len(client.calls)}")


def run_gemini(image):
    """Run against the real service using keys from the environment."""
    from sliceflow.config import load_credentials

    processor = SliceFlow()
    processor.configure()
    report = processor.run(image, credentials=load_credentials())
    print(report.text or "No text found.")


def main():
    print("SliceFlow Basic Usage Example")
    print("=" * 40)

    image = generate_test_strip(height=7000, width=400)
    print(f"Memory usage: {image.nbytes / 1024 / 1024:.1f} MB")
    print()

    boundaries = show_segmentation(image)
    assert sum(b.height for b in boundaries) == image.shape[0]
    assert np.all(np.diff([b.start_y for b in boundaries]) > 0)
    print()

    run_scripted(image)

    if os.environ.get("GEMINI_API_KEYS"):
        print("\nGEMINI_API_KEYS found, running against the service:")
        run_gemini(image)


if __name__ == "__main__":
    main()
