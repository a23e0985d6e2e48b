"""
Per-exercise rest countdowns.

Remaining time is always recomputed from the start timestamp and the wall
clock; nothing is decremented per tick.  A countdown therefore stays
correct when the host stops calling tick() for a while (suspended laptop,
locked phone, throttled background process) and shows the right value the
moment it is queried again.
"""

import logging
import re
from typing import Callable

from .clock import Clock, SystemClock
from .config import DEFAULT_REST_SECONDS
from .models import RestTimerState

logger = logging.getLogger(__name__)

RestNotifier = Callable[[str], None]

_FIRST_INT = re.compile(r"(\d+)")


def parse_rest_duration(raw: str | None, default: int = DEFAULT_REST_SECONDS) -> int:
    """
    Extract the rest duration in seconds from a free-form string.

    The first run of digits wins: "90s" → 90, "2 min" → 2, "rest 45" → 45.
    Anything without a usable positive integer yields ``default``.

    Args:
        raw: User-entered rest time (may be None)
        default: Fallback duration in seconds

    Returns:
        Duration in seconds (always positive)
    """
    if not raw:
        return default
    match = _FIRST_INT.search(raw)
    if match is None:
        return default
    value = int(match.group(1))
    return value if value > 0 else default


def remaining_seconds(start_ms: int | None, total_seconds: int, now_ms: int) -> int:
    """
    Seconds left in a countdown started at ``start_ms``.

    remaining = max(0, total - floor((now - start) / 1000)); an unstarted
    countdown has its full total remaining.
    """
    if start_ms is None:
        return total_seconds
    elapsed = (now_ms - start_ms) // 1000
    return max(0, total_seconds - elapsed)


def format_rest_time(seconds: int) -> str:
    """Format a countdown value as m:ss."""
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes}:{secs:02d}"


class RestTimer:
    """
    Rest countdowns for every exercise in a session, keyed by exercise id.

    The "rest complete" notifier is called once per countdown, on the first
    tick() (or resume()) that observes zero remaining while the timer is
    active.  The timer is then marked inactive so later ticks stay quiet.
    """

    def __init__(self, clock: Clock | None = None, notifier: RestNotifier | None = None):
        self.clock = clock or SystemClock()
        self.notifier = notifier
        self._timers: dict[str, RestTimerState] = {}

    def __contains__(self, exercise_id: str) -> bool:
        return exercise_id in self._timers

    def state(self, exercise_id: str) -> RestTimerState | None:
        return self._timers.get(exercise_id)

    def start(self, exercise_id: str, total_seconds: int) -> None:
        """Start (or restart) a countdown of ``total_seconds`` from now."""
        self._timers[exercise_id] = RestTimerState(
            total_seconds=total_seconds,
            start_ms=self.clock.now_ms(),
            active=True,
        )
        logger.debug("rest timer %s started (%ss)", exercise_id, total_seconds)

    def reset(self, exercise_id: str, total_seconds: int) -> None:
        """Stop a countdown and show its full duration again."""
        self._timers[exercise_id] = RestTimerState(total_seconds=total_seconds)
        logger.debug("rest timer %s reset (%ss)", exercise_id, total_seconds)

    def toggle(self, exercise_id: str, total_seconds: int) -> bool:
        """
        Start the countdown, or reset it when it is already running.

        Returns:
            True if the countdown is now running
        """
        current = self._timers.get(exercise_id)
        if current is not None and current.active:
            self.reset(exercise_id, total_seconds)
            return False
        self.start(exercise_id, total_seconds)
        return True

    def sync_total(self, exercise_id: str, total_seconds: int) -> None:
        """Reset a countdown whose rest time was edited down to a shorter duration."""
        current = self._timers.get(exercise_id)
        if current is not None and total_seconds < current.total_seconds:
            self.reset(exercise_id, total_seconds)

    def remaining(self, exercise_id: str) -> int | None:
        """Seconds left for one exercise, or None if it never had a countdown."""
        current = self._timers.get(exercise_id)
        if current is None:
            return None
        return remaining_seconds(current.start_ms, current.total_seconds, self.clock.now_ms())

    def is_active(self, exercise_id: str) -> bool:
        current = self._timers.get(exercise_id)
        return current is not None and current.active

    @property
    def has_active(self) -> bool:
        return any(t.active for t in self._timers.values())

    def tick(self) -> dict[str, int]:
        """
        Recompute every active countdown from the wall clock.

        Timers that have reached zero fire the notifier and go inactive.

        Returns:
            Mapping of exercise id → remaining seconds for timers that were
            active when tick() was called
        """
        now = self.clock.now_ms()
        result: dict[str, int] = {}
        for exercise_id, timer in self._timers.items():
            if not timer.active:
                continue
            left = remaining_seconds(timer.start_ms, timer.total_seconds, now)
            result[exercise_id] = left
            if left == 0:
                timer.active = False
                self._notify(exercise_id)
        return result

    def resume(self) -> dict[str, int]:
        """Recompute immediately after the host was suspended or hidden."""
        return self.tick()

    def clear(self) -> None:
        """Drop all countdowns (session teardown)."""
        self._timers.clear()

    def _notify(self, exercise_id: str) -> None:
        logger.info("rest complete for %s", exercise_id)
        if self.notifier is None:
            return
        try:
            self.notifier(exercise_id)
        except Exception:
            # Tone/haptics are best-effort
            logger.debug("rest notifier failed for %s", exercise_id, exc_info=True)
