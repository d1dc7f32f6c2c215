"""Phase, action and cycle-shape constants used by the scheduler."""

from __future__ import annotations

PHASE_BUSY = "busy"
PHASE_SHORT_BREAK = "short_break"
PHASE_LONG_BREAK = "long_break"

BREAK_PHASES: frozenset[str] = frozenset({PHASE_SHORT_BREAK, PHASE_LONG_BREAK})

ACTION_ACKNOWLEDGE = "acknowledge"
ACTION_SNOOZE = "snooze"

# Four busy phases make a set; the break after the last one is long.
POSITIONS_PER_SET = 4
LONG_BREAK_POSITION = POSITIONS_PER_SET - 1
