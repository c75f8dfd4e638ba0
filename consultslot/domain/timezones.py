"""
Timezone name helpers.
"""

import pendulum


def is_valid_timezone(name: str) -> bool:
    """Check whether ``name`` is a known IANA timezone."""
    if not name:
        return False
    try:
        pendulum.timezone(name)
    except (ValueError, KeyError):
        return False
    return True


def resolve_timezone(name: str | None, fallback: str) -> str:
    """Return ``name`` if it is a valid timezone, otherwise ``fallback``."""
    if name and is_valid_timezone(name):
        return name
    return fallback
