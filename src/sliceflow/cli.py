"""Command-line front-end: extract text from one image into a .txt file."""

import argparse
import sys
from pathlib import Path
from urllib.parse import urlparse

from pydantic import ValidationError

from sliceflow.backends import ImageLoadError
from sliceflow.callback import MetricsCallback, ProgressCallback
from sliceflow.config import (
    DEFAULT_MODEL,
    ConfigurationError,
    DispatchConfig,
    SegmentationConfig,
    SliceFlowConfig,
    load_credentials,
)
from sliceflow.credentials import CredentialPool
from sliceflow.model import SliceFlow


def default_output_path(source: str) -> Path:
    """``<image name>.txt`` in the working directory."""
    name = Path(urlparse(source).path).name if "://" in source else Path(source).name
    return Path(f"{name or 'output'}.txt")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="sliceflow", description="Extract reading-order text from a tall comic image."
    )
    ap.add_argument("image", help="Image path or http(s) URL")
    ap.add_argument("-o", "--output", default=None, help="Output text file. Default: <image name>.txt")
    ap.add_argument(
        "--keys",
        default=None,
        help="Comma separated API keys. Default: GEMINI_API_KEYS from the environment or .env",
    )
    ap.add_argument("--max-slice", type=int, default=3000, help="Maximum slice height in pixels.")
    ap.add_argument("--min-slice", type=int, default=1500, help="Minimum slice height in pixels.")
    ap.add_argument("--workers", type=int, default=4, help="Slices dispatched concurrently.")
    ap.add_argument("--model", default=DEFAULT_MODEL)
    ap.add_argument("--quiet", action="store_true", help="Only print the final status line.")
    return ap


def main(argv: list[str] | None = None, client=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = SliceFlowConfig(
            segmentation=SegmentationConfig(
                max_slice_height=args.max_slice, min_slice_height=args.min_slice
            ),
            dispatch=DispatchConfig(model=args.model, max_workers=args.workers),
        )
        pool = CredentialPool(load_credentials(args.keys))
    except (ConfigurationError, ValidationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    processor = SliceFlow(config)
    processor.configure(client=client)

    metrics = MetricsCallback(verbose=False)
    callbacks = [metrics] if args.quiet else [ProgressCallback(verbose=True), metrics]
    try:
        report = processor.run(args.image, pool, callbacks=callbacks)
    except ImageLoadError as e:
        print(f"Invalid image: {e}", file=sys.stderr)
        return 1

    if report.is_empty:
        print("No text found.")
        return 0

    output = Path(args.output) if args.output else default_output_path(args.image)
    report.write(output)
    failed = report.failed_slices
    status = f"Analysis complete: {report.record_count} lines written to {output}"
    if failed:
        status += f" ({len(failed)} of {len(report.outcomes)} slices failed)"
    print(status)
    return 0


if __name__ == "__main__":
    sys.exit(main())
