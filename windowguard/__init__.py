"""Count-based windowed threshold counters for throttling noisy repeated events."""

from .counter import (
    AboveThresholdCallback,
    BelowThresholdCallback,
    CountingCircuitBreaker,
    CountingWindowedBuffer,
    InvalidArgument,
    WindowTimer,
    WindowedThresholdCounter,
)
from .logging_utils import JsonFormatter, configure_logging

__all__ = [
    "AboveThresholdCallback",
    "BelowThresholdCallback",
    "CountingCircuitBreaker",
    "CountingWindowedBuffer",
    "InvalidArgument",
    "JsonFormatter",
    "WindowTimer",
    "WindowedThresholdCounter",
    "configure_logging",
]
