"""Presentation helpers for the command line clients."""

from __future__ import annotations

UNAVAILABLE_POLYBAR = " --:--"
UNAVAILABLE_TEXT = "unavailable"


def format_polybar(seconds: int) -> str:
    """Render remaining seconds as a sign column followed by ``mm:ss``."""
    sign = "-" if seconds < 0 else " "
    minutes, secs = divmod(abs(seconds), 60)
    return f"{sign}{minutes:02d}:{secs:02d}"
