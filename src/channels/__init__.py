from .actions import ActionQueue, ActionSender
from .broadcast import StateBroadcast, StateReceiver, StateWatcher
from .errors import ChannelClosedError

__all__ = [
    "ActionQueue",
    "ActionSender",
    "ChannelClosedError",
    "StateBroadcast",
    "StateReceiver",
    "StateWatcher",
]
