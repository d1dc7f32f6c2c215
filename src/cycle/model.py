"""Immutable cycle state and timing values shared with observers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

from app_config_schema import CycleSettings, TimingSettings

from .constants import (
    LONG_BREAK_POSITION,
    PHASE_BUSY,
    PHASE_LONG_BREAK,
    PHASE_SHORT_BREAK,
    POSITIONS_PER_SET,
)

Phase = Literal["busy", "short_break", "long_break"]
ControlAction = Literal["acknowledge", "snooze"]


@dataclass(frozen=True)
class CycleInfo:
    """Snapshot published by the scheduler on every transition and announcement."""
    current_phase: Phase
    next_phase: Phase
    needs_acknowledgment: bool
    phase_started_at: float

    @property
    def announcement_key(self) -> tuple[str, str, float]:
        """Identifies one pending transition across its re-announcements."""
        return (self.current_phase, self.next_phase, self.phase_started_at)


@dataclass(frozen=True)
class CycleTimings:
    """Scaled durations in seconds."""
    busy_seconds: float
    short_break_seconds: float
    long_break_seconds: float
    reannounce_seconds: float
    stale_drain_seconds: float

    def __post_init__(self) -> None:
        for name in (
            "busy_seconds",
            "short_break_seconds",
            "long_break_seconds",
            "reannounce_seconds",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be greater than zero")
        if self.stale_drain_seconds < 0:
            raise ValueError("stale_drain_seconds must not be negative")

    def duration_for(self, phase: Phase) -> float:
        if phase == PHASE_BUSY:
            return self.busy_seconds
        if phase == PHASE_SHORT_BREAK:
            return self.short_break_seconds
        if phase == PHASE_LONG_BREAK:
            return self.long_break_seconds
        raise ValueError(f"Unknown phase: {phase}")

    @classmethod
    def from_settings(cls, cycle: CycleSettings, timing: TimingSettings) -> "CycleTimings":
        scale = timing.scale
        return cls(
            busy_seconds=cycle.busy_seconds * scale,
            short_break_seconds=cycle.short_break_seconds * scale,
            long_break_seconds=cycle.long_break_seconds * scale,
            reannounce_seconds=cycle.reannounce_seconds * scale,
            stale_drain_seconds=cycle.stale_drain_seconds * scale,
        )


def break_after(position: int) -> Phase:
    """Return the break that follows the busy phase at ``position`` in a set."""
    if not 0 <= position < POSITIONS_PER_SET:
        raise ValueError(f"position must be in [0, {POSITIONS_PER_SET}), got: {position}")
    if position == LONG_BREAK_POSITION:
        return PHASE_LONG_BREAK
    return PHASE_SHORT_BREAK


def remaining_seconds(info: CycleInfo, timings: CycleTimings, now: float) -> int:
    """Seconds left in the current phase; negative once the phase is overdue."""
    elapsed = max(0.0, now - info.phase_started_at)
    return int(math.ceil(timings.duration_for(info.current_phase) - elapsed))
