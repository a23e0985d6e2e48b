"""
Debounced auto-save of field edits.

Every edit reschedules the save for its entity; only the payload of the last
edit in a burst is handed to the save function.  The scheduler never runs on
its own: the host loop calls run_due() on its tick, which keeps the engine
single-threaded and lets tests drive time explicitly.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from .clock import Clock, SystemClock
from .config import AUTOSAVE_DELAY_MS, SAVED_MARKER_MS

logger = logging.getLogger(__name__)

P = TypeVar("P")

SaveFn = Callable[[str, P], None]
ErrorFn = Callable[[str, Exception], None]


@dataclass
class PendingSave(Generic[P]):
    """A save waiting for its debounce deadline."""

    entity_id: str
    payload: P
    deadline_ms: int


class AutoSaveScheduler(Generic[P]):
    """
    At most one pending save per entity id.

    Saves for different ids never cancel each other.  A failed save is
    recorded in ``errors`` and passed to ``on_error``; it is not retried and
    does not stop other saves from running.
    """

    def __init__(
        self,
        save: SaveFn,
        clock: Clock | None = None,
        delay_ms: int = AUTOSAVE_DELAY_MS,
        saved_marker_ms: int = SAVED_MARKER_MS,
        on_error: ErrorFn | None = None,
    ):
        self._save = save
        self.clock = clock or SystemClock()
        self.delay_ms = delay_ms
        self.saved_marker_ms = saved_marker_ms
        self.on_error = on_error
        self._pending: dict[str, PendingSave[P]] = {}
        self._saved_until: dict[str, int] = {}
        self.errors: dict[str, Exception] = {}

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule_save(self, entity_id: str, payload: P, delay_ms: int | None = None) -> None:
        """Replace any pending save for ``entity_id`` with a new one."""
        delay = self.delay_ms if delay_ms is None else delay_ms
        superseded = self._pending.pop(entity_id, None)
        if superseded is not None:
            logger.debug("autosave %s superseded", entity_id)
        self._pending[entity_id] = PendingSave(
            entity_id=entity_id,
            payload=payload,
            deadline_ms=self.clock.now_ms() + delay,
        )

    def is_pending(self, entity_id: str) -> bool:
        return entity_id in self._pending

    def pending_ids(self) -> list[str]:
        return list(self._pending)

    def next_deadline_ms(self) -> int | None:
        if not self._pending:
            return None
        return min(p.deadline_ms for p in self._pending.values())

    # ------------------------------------------------------------------
    # Firing
    # ------------------------------------------------------------------

    def run_due(self) -> list[str]:
        """
        Fire every save whose deadline has passed.

        Returns:
            Entity ids that were saved successfully
        """
        now = self.clock.now_ms()
        due = [eid for eid, p in self._pending.items() if p.deadline_ms <= now]
        return [eid for eid in due if self._fire(eid)]

    def flush(self, entity_id: str) -> bool:
        """
        Fire the pending save for one entity immediately.

        Returns:
            False if the save failed; True if it succeeded or nothing was pending
        """
        if entity_id not in self._pending:
            return True
        return self._fire(entity_id)

    def flush_all(self) -> list[str]:
        """
        Fire every pending save now, regardless of deadlines.

        Returns:
            Entity ids whose save failed
        """
        failed = []
        for entity_id in list(self._pending):
            if not self._fire(entity_id):
                failed.append(entity_id)
        return failed

    def cancel(self, entity_id: str) -> None:
        self._pending.pop(entity_id, None)

    def cancel_all(self) -> None:
        """Drop pending saves without running them."""
        self._pending.clear()

    def _fire(self, entity_id: str) -> bool:
        pending = self._pending.pop(entity_id)
        try:
            self._save(entity_id, pending.payload)
        except Exception as exc:
            logger.warning("autosave of %s failed: %s", entity_id, exc)
            self.errors[entity_id] = exc
            self._saved_until.pop(entity_id, None)
            if self.on_error is not None:
                self.on_error(entity_id, exc)
            return False
        self.errors.pop(entity_id, None)
        self._saved_until[entity_id] = self.clock.now_ms() + self.saved_marker_ms
        logger.debug("autosave %s done", entity_id)
        return True

    # ------------------------------------------------------------------
    # "Saved" markers
    # ------------------------------------------------------------------

    def is_saved(self, entity_id: str) -> bool:
        """True while the "saved" marker for ``entity_id`` should be shown."""
        until = self._saved_until.get(entity_id)
        if until is None:
            return False
        if self.clock.now_ms() >= until:
            del self._saved_until[entity_id]
            return False
        return True

    def saved_ids(self) -> set[str]:
        return {eid for eid in list(self._saved_until) if self.is_saved(eid)}
