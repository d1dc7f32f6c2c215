"""Serialization helpers for status feed websocket events."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable

from cycle import CycleInfo, CycleTimings, remaining_seconds

EVENT_HELLO = "hello"
EVENT_CYCLE = "cycle"


def make_event(
    event_type: str,
    *,
    now_fn: Callable[[], datetime] | None = None,
    **payload: Any,
) -> str:
    """Serialize an event payload with type and timestamp for websocket delivery."""
    now = now_fn() if now_fn is not None else datetime.now(timezone.utc)
    return json.dumps(
        {
            "type": event_type,
            "timestamp": now.isoformat(),
            **payload,
        }
    )


def cycle_payload(info: CycleInfo, timings: CycleTimings, now: float) -> dict[str, Any]:
    return {
        "current_phase": info.current_phase,
        "next_phase": info.next_phase,
        "needs_acknowledgment": info.needs_acknowledgment,
        "duration_seconds": int(timings.duration_for(info.current_phase)),
        "remaining_seconds": remaining_seconds(info, timings, now),
    }
