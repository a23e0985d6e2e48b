"""Elapsed-time stopwatch for a whole workout session."""

from .clock import Clock, SystemClock


def format_elapsed(start_ms: int, now_ms: int) -> str:
    """
    Format the time between two epoch-ms timestamps as m:ss or h:mm:ss.

    >>> format_elapsed(0, 65_000)
    '1:05'
    >>> format_elapsed(0, 3_725_000)
    '1:02:05'
    """
    seconds = max(0, now_ms - start_ms) // 1000
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class SessionClock:
    """
    Stopwatch anchored at the session start.

    Holds no running counter: every read is recomputed from the start
    timestamp, so a redraw after missed updates is always correct.
    """

    def __init__(self, clock: Clock | None = None, start_ms: int | None = None):
        self.clock = clock or SystemClock()
        self.start_ms = start_ms if start_ms is not None else self.clock.now_ms()

    def elapsed_ms(self) -> int:
        return max(0, self.clock.now_ms() - self.start_ms)

    def elapsed(self) -> str:
        return format_elapsed(self.start_ms, self.clock.now_ms())

    def elapsed_minutes(self) -> int:
        """Whole minutes elapsed, rounded to nearest (for completion records)."""
        return round(self.elapsed_ms() / 60_000)
