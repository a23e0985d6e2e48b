"""Wall-clock source for the session engine (epoch milliseconds)."""

import time
from typing import Protocol


class Clock(Protocol):
    def now_ms(self) -> int: ...


class SystemClock:
    """Reads the host's wall clock."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)
