"""Optional websocket feed mirroring the scheduler state."""

from .events import EVENT_CYCLE, EVENT_HELLO, cycle_payload, make_event
from .service import StatusFeedServer

__all__ = [
    "EVENT_CYCLE",
    "EVENT_HELLO",
    "StatusFeedServer",
    "cycle_payload",
    "make_event",
]
