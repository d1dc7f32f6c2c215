from .constants import (
    ACTION_ACKNOWLEDGE,
    ACTION_SNOOZE,
    PHASE_BUSY,
    PHASE_LONG_BREAK,
    PHASE_SHORT_BREAK,
)
from .model import (
    ControlAction,
    CycleInfo,
    CycleTimings,
    Phase,
    break_after,
    remaining_seconds,
)
from .scheduler import CycleScheduler

__all__ = [
    "ACTION_ACKNOWLEDGE",
    "ACTION_SNOOZE",
    "PHASE_BUSY",
    "PHASE_LONG_BREAK",
    "PHASE_SHORT_BREAK",
    "ControlAction",
    "CycleInfo",
    "CycleScheduler",
    "CycleTimings",
    "Phase",
    "break_after",
    "remaining_seconds",
]
