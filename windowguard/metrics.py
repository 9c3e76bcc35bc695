from prometheus_client import Counter, Gauge

INCREMENTS_TOTAL = Counter(
    "windowguard_increments_total",
    "Occurrences recorded by threshold counters",
    ["counter"],
)
SUPPRESSED_TOTAL = Counter(
    "windowguard_suppressed_total",
    "Occurrences recorded after the window threshold was exceeded",
    ["counter"],
)
WINDOWS_OPENED_TOTAL = Counter(
    "windowguard_windows_opened_total",
    "Counting windows opened by a first occurrence",
    ["counter"],
)
WINDOWS_BREACHED_TOTAL = Counter(
    "windowguard_windows_breached_total",
    "Counting windows that expired above their threshold",
    ["counter"],
)
ACTIVE_WINDOWS = Gauge(
    "windowguard_active_windows",
    "Counters currently holding an open window",
    ["counter"],
)


__all__ = [
    "INCREMENTS_TOTAL",
    "SUPPRESSED_TOTAL",
    "WINDOWS_OPENED_TOTAL",
    "WINDOWS_BREACHED_TOTAL",
    "ACTIVE_WINDOWS",
]
