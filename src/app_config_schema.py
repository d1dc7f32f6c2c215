"""Dataclass schema objects used by runtime configuration loading."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CONFIG_FILE = "config.toml"
CONFIG_FILE_ENV = "TOMATO_CONFIG_FILE"


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class TimingSettings:
    """Global time scale from `[timing]`, applied to every duration."""
    scale: float = 1.0


@dataclass(frozen=True)
class CycleSettings:
    """Phase durations and escalation tuning from `[cycle]`."""
    busy_seconds: float = 25 * 60
    short_break_seconds: float = 5 * 60
    long_break_seconds: float = 15 * 60
    reannounce_seconds: float = 30.0
    stale_drain_seconds: float = 0.1
    action_queue_size: int = 32


@dataclass(frozen=True)
class ProtocolSettings:
    """Unix socket command protocol settings from `[protocol]`."""
    socket_path: str = "/tmp/tomato-notify-socket"
    connection_timeout_seconds: float = 1.0


@dataclass(frozen=True)
class NotifierSettings:
    """Desktop notification backend settings from `[notifier]`."""
    enabled: bool = True
    program: str = "dunstify"
    app_name: str = "tomato"
    urgency: str = "normal"
    timeout_seconds: float = 0.0


@dataclass(frozen=True)
class StatusFeedSettings:
    """Optional websocket state feed settings from `[status_feed]`."""
    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 8766


@dataclass(frozen=True)
class AppConfig:
    """Complete typed runtime configuration loaded from `config.toml`."""
    timing: TimingSettings
    cycle: CycleSettings
    protocol: ProtocolSettings
    notifier: NotifierSettings
    status_feed: StatusFeedSettings
    source_file: str
