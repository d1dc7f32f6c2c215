"""Human readable announcement texts and offered notification actions."""

from __future__ import annotations

from cycle import PHASE_BUSY, PHASE_LONG_BREAK, PHASE_SHORT_BREAK, CycleInfo

ACKNOWLEDGE_ACTION_ID = "ready"
REMIND_ACTION_ID = "remind"

ANNOUNCEMENT_ACTIONS: tuple[tuple[str, str], ...] = (
    (ACKNOWLEDGE_ACTION_ID, "Ready"),
    (REMIND_ACTION_ID, "Remind me later"),
)


def announcement_text(info: CycleInfo) -> str:
    if info.next_phase == PHASE_BUSY:
        return "Break is over. Ready to get back to work?"
    if info.next_phase == PHASE_SHORT_BREAK:
        return "Tomato finished. Time for a short break."
    if info.next_phase == PHASE_LONG_BREAK:
        return "Four tomatoes done. Time for a long break."
    return f"Next up: {info.next_phase}"
