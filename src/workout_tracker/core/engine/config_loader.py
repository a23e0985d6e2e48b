"""
YAML → typed session settings.

Loads timing constants from session.yaml (bundled with the package) and
optionally merges user overrides from ~/.workout-tracker/session.yaml.

Usage:
    from workout_tracker.core.engine.config_loader import load_session_settings
    settings = load_session_settings()
    delay = settings.autosave_delay_ms

If the bundled YAML cannot be parsed, the Python defaults from config.py are
used (no crash).  If the user override file exists but has parse errors or
invalid values, a warning is issued and the offending values are ignored.
"""

from __future__ import annotations

import importlib.resources
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..config import (
    AUTOSAVE_DELAY_MS,
    CLOCK_TICK_SECONDS,
    DEFAULT_REST_SECONDS,
    HOME_ENV_VAR,
    REST_TICK_SECONDS,
    SAVED_MARKER_MS,
)


@dataclass(frozen=True)
class SessionSettings:
    """Timing knobs for one workout session."""

    default_rest_seconds: int = DEFAULT_REST_SECONDS
    rest_tick_seconds: float = REST_TICK_SECONDS
    rest_bell: bool = True
    clock_tick_seconds: float = CLOCK_TICK_SECONDS
    autosave_delay_ms: int = AUTOSAVE_DELAY_MS
    saved_marker_ms: int = SAVED_MARKER_MS

    def __post_init__(self) -> None:
        if self.default_rest_seconds <= 0:
            raise ValueError("default_rest_seconds must be positive")
        if self.rest_tick_seconds <= 0 or self.clock_tick_seconds <= 0:
            raise ValueError("tick intervals must be positive")
        if self.autosave_delay_ms < 0:
            raise ValueError("autosave_delay_ms must be non-negative")
        if self.saved_marker_ms < 0:
            raise ValueError("saved_marker_ms must be non-negative")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; warn and return {} on parse errors."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"workout-tracker: ignoring {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _settings_from_dict(cfg: dict[str, Any]) -> SessionSettings:
    rest = cfg.get("rest_timer", {}) or {}
    clock = cfg.get("session_clock", {}) or {}
    save = cfg.get("autosave", {}) or {}
    return SessionSettings(
        default_rest_seconds=int(rest.get("default_seconds", DEFAULT_REST_SECONDS)),
        rest_tick_seconds=float(rest.get("tick_seconds", REST_TICK_SECONDS)),
        rest_bell=bool(rest.get("bell", True)),
        clock_tick_seconds=float(clock.get("tick_seconds", CLOCK_TICK_SECONDS)),
        autosave_delay_ms=int(save.get("delay_ms", AUTOSAVE_DELAY_MS)),
        saved_marker_ms=int(save.get("saved_marker_ms", SAVED_MARKER_MS)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled session.yaml, or None if not found."""
    ref = importlib.resources.files("workout_tracker").joinpath("session.yaml")
    # Materialise to a real path so it can be passed to open()
    with importlib.resources.as_file(ref) as p:
        return p if p.exists() else None


def get_user_config_dir() -> Path:
    """Return the per-user data directory (``$WORKOUT_TRACKER_HOME`` or ~/.workout-tracker)."""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / ".workout-tracker"


def get_user_yaml_path() -> Path | None:
    """Return the user's session.yaml if it exists, else None."""
    p = get_user_config_dir() / "session.yaml"
    return p if p.exists() else None


def load_session_config() -> dict[str, Any]:
    """
    Load and merge session configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/workout_tracker/session.yaml
    2. User override at ~/.workout-tracker/session.yaml

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            config = _deep_merge(config, user_cfg)

    return config


def load_session_settings() -> SessionSettings:
    """
    Build SessionSettings from the merged YAML configuration.

    Invalid values fall back to the Python defaults with a warning.
    """
    cfg = load_session_config()
    try:
        return _settings_from_dict(cfg)
    except (TypeError, ValueError) as exc:
        warnings.warn(
            f"workout-tracker: invalid session settings ({exc}); using defaults.",
            stacklevel=2,
        )
        return SessionSettings()
