"""
Configuration constants for the workout session engine.

All adjustable parameters are centralized here. Values can be overridden
per user through ``~/.workout-tracker/session.yaml`` (see
``core/engine/config_loader.py``).
"""

from typing import Final

# =============================================================================
# REST TIMER
# =============================================================================

DEFAULT_REST_SECONDS: Final[int] = 60  # Used when a rest-time string has no digits
REST_TICK_SECONDS: Final[float] = 0.1  # Redraw cadence while a countdown is active

# =============================================================================
# SESSION CLOCK
# =============================================================================

CLOCK_TICK_SECONDS: Final[float] = 1.0  # Visible cadence of the elapsed-time display

# =============================================================================
# AUTO-SAVE
# =============================================================================

AUTOSAVE_DELAY_MS: Final[int] = 1000  # Debounce window for field edits
SAVED_MARKER_MS: Final[int] = 2000  # How long the "saved" marker stays visible

# =============================================================================
# IDENTITY
# =============================================================================

GUEST_USER_ID: Final[str] = "00000000-0000-0000-0000-000000000000"
USER_ENV_VAR: Final[str] = "WORKOUT_TRACKER_USER"
HOME_ENV_VAR: Final[str] = "WORKOUT_TRACKER_HOME"

# =============================================================================
# WORKOUT DEFAULTS
# =============================================================================

DEFAULT_SETS: Final[int] = 3
DEFAULT_REPS: Final[str] = "10"
SECONDS_PER_SET: Final[int] = 40  # Working time per set for duration estimates
DIFFICULTIES: Final[tuple[str, ...]] = ("Beginner", "Intermediate", "Advanced")
HISTORY_LIMIT: Final[int] = 50
