"""
Current-user lookup.

Accounts are handled outside this tool; the user id comes from
``$WORKOUT_TRACKER_USER`` when set.  Without it everything runs under the
fixed guest id, which has full access to its own workouts.
"""

import os
from collections.abc import Mapping

from ..core.config import GUEST_USER_ID, USER_ENV_VAR


def current_user_id(environ: Mapping[str, str] | None = None) -> str:
    """Return the signed-in user id, or the guest id."""
    env = os.environ if environ is None else environ
    user = env.get(USER_ENV_VAR, "").strip()
    return user or GUEST_USER_ID


def is_guest(user_id: str) -> bool:
    return user_id == GUEST_USER_ID
