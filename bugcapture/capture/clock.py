"""Time sources for captured entries."""

import time


def epoch_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds, for durations only."""
    return time.perf_counter() * 1000
