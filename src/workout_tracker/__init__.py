"""Workout tracker: timed workout sessions with drift-proof rest timers."""

__version__ = "0.3.0"
