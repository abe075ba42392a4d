"""Clearance ordering and access checks for cases."""

from __future__ import annotations

from enum import Enum
from typing import Union

_ORDER = {"low": 1, "medium": 2, "high": 3, "critical": 4}
_UNRESTRICTED_ROLES = frozenset({"admin", "investigator"})

Level = Union[str, Enum]


class ClearanceError(Exception):
    """Raised when a user's clearance is too low for a case."""


def _rank(level: Level) -> int:
    value = level.value if isinstance(level, Enum) else level
    return _ORDER.get(value, 0)


def is_clearance_sufficient(user_clearance: Level, required: Level) -> bool:
    """True when the user's clearance is at least the required level."""
    return _rank(user_clearance) >= _rank(required)


def check_clearance(user_role: Level, user_clearance: Level, case_level: Level) -> None:
    """Raise ClearanceError unless the user may see a case of this level."""
    role = user_role.value if isinstance(user_role, Enum) else user_role
    if role in _UNRESTRICTED_ROLES:
        return
    if not is_clearance_sufficient(user_clearance, case_level):
        raise ClearanceError("insufficient clearance level for this case")