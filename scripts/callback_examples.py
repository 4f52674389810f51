"""Examples demonstrating the SliceFlow callback system.

This script shows how to use callbacks for monitoring progress, key
failover and per-slice metrics while a tall image is extracted.
"""

from sliceflow.callback import (
    CompositeCallback,
    MetricsCallback,
    ProgressCallback,
    SliceFlowCallback,
)
from sliceflow.config import DispatchConfig, SliceFlowConfig
from sliceflow.examples import ScriptedClient, generate_test_strip
from sliceflow.model import SliceFlow

KEYS = ["demo-key-aaaa", "demo-key-bbbb", "demo-key-cccc"]


def flaky_client():
    """Client where slice 1 needs a second key and slice 2 never succeeds."""
    return ScriptedClient(
        responses={
            (1, KEYS[1]): TimeoutError("deadline exceeded"),
            (2, KEYS[2]): ConnectionError("reset by peer"),
            (2, KEYS[0]): RuntimeError("429 quota exhausted"),
            (2, KEYS[1]): "not json",
        },
        default=[{"text": "Hello there", "category": "speech"}],
    )


def make_processor(workers=1):
    processor = SliceFlow(SliceFlowConfig(dispatch=DispatchConfig(max_workers=workers)))
    processor.configure(client=flaky_client())
    return processor


def example_basic_callbacks():
    """Basic progress tracking."""
    print("=== Basic Callback Usage ===\n")

    image = generate_test_strip(height=9000)
    progress = ProgressCallback(verbose=True, show_rate=True)
    report = make_processor().run(image, KEYS, callbacks=[progress])

    print(f"Failed slices: {report.failed_slices}\n")


def example_metrics():
    """Per-slice timing and attempt metrics with concurrent dispatch."""
    print("=== Metrics Example ===\n")

    image = generate_test_strip(height=9000)
    metrics = MetricsCallback(verbose=True)
    composite = CompositeCallback([ProgressCallback(verbose=False), metrics])
    make_processor(workers=4).run(image, KEYS, callbacks=[composite])

    for key, value in metrics.get_detailed_metrics().items():
        print(f"  {key}: {value}")
    print()


def example_custom_callback():
    """Custom callback that counts failovers per key."""
    print("=== Custom Callback Example ===\n")

    class FailoverCounter(SliceFlowCallback):
        def __init__(self):
            self.failures = {}

        def on_attempt_failed(self, chunk, attempt, credential_hint, error):
            self.failures[credential_hint] = self.failures.get(credential_hint, 0) + 1

        def on_processing_end(self, stats):
            print("Failovers by key:")
            for hint, count in sorted(self.failures.items()):
                print(f"   {hint}: {count}")

    counter = FailoverCounter()
    make_processor().run(generate_test_strip(height=9000), KEYS, callbacks=[counter])
    print()


if __name__ == "__main__":
    print("SliceFlow Callback System Examples")
    print("=" * 50)

    example_basic_callbacks()
    example_metrics()
    example_custom_callback()

    print("All callback examples completed!")
