"""UTC time utilities.

Timestamps are int nanoseconds since the Unix epoch. Only the HTTP layer reads
the wall clock; the engine always receives `now` from its caller.
"""

import time

NANOS_PER_SECOND = 1_000_000_000


def utc_now_ns() -> int:
    """Return the current UTC instant in nanoseconds."""
    return time.time_ns()


def seconds_to_nanos(seconds: int) -> int:
    return seconds * NANOS_PER_SECOND
