from .backend import (
    CommandNotificationBackend,
    NotificationBackend,
    NotificationBackendError,
    NotificationResult,
    NullNotificationBackend,
)
from .driver import NotifierDriver, map_result_to_action
from .messages import ANNOUNCEMENT_ACTIONS, announcement_text

__all__ = [
    "ANNOUNCEMENT_ACTIONS",
    "CommandNotificationBackend",
    "NotificationBackend",
    "NotificationBackendError",
    "NotificationResult",
    "NotifierDriver",
    "NullNotificationBackend",
    "announcement_text",
    "map_result_to_action",
]
