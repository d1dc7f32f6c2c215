"""Typed parser for config.toml sections into immutable app settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from app_config_schema import (
    AppConfig,
    AppConfigurationError,
    CycleSettings,
    NotifierSettings,
    ProtocolSettings,
    StatusFeedSettings,
    TimingSettings,
)

_ALLOWED_URGENCIES = {"low", "normal", "critical"}


def parse_app_config(
    raw: Mapping[str, Any],
    *,
    base_dir: Path,
    source_file: str,
) -> AppConfig:
    """Parse raw TOML mappings into strongly typed application settings."""
    timing = _parse_timing_settings(_section(raw, "timing"))
    cycle = _parse_cycle_settings(_section(raw, "cycle"))
    protocol = _parse_protocol_settings(_section(raw, "protocol"), base_dir=base_dir)
    notifier = _parse_notifier_settings(_section(raw, "notifier"))
    status_feed = _parse_status_feed_settings(_section(raw, "status_feed"))

    return AppConfig(
        timing=timing,
        cycle=cycle,
        protocol=protocol,
        notifier=notifier,
        status_feed=status_feed,
        source_file=source_file,
    )


def _parse_timing_settings(section: Mapping[str, Any]) -> TimingSettings:
    return TimingSettings(
        scale=_as_positive_float(section.get("scale", 1.0), "timing.scale"),
    )


def _parse_cycle_settings(section: Mapping[str, Any]) -> CycleSettings:
    defaults = CycleSettings()
    queue_size = _as_int(
        section.get("action_queue_size", defaults.action_queue_size),
        "cycle.action_queue_size",
    )
    if queue_size <= 0:
        raise AppConfigurationError("cycle.action_queue_size must be positive.")

    drain = _as_float(
        section.get("stale_drain_seconds", defaults.stale_drain_seconds),
        "cycle.stale_drain_seconds",
    )
    if drain < 0:
        raise AppConfigurationError("cycle.stale_drain_seconds must not be negative.")

    return CycleSettings(
        busy_seconds=_as_positive_float(
            section.get("busy_seconds", defaults.busy_seconds),
            "cycle.busy_seconds",
        ),
        short_break_seconds=_as_positive_float(
            section.get("short_break_seconds", defaults.short_break_seconds),
            "cycle.short_break_seconds",
        ),
        long_break_seconds=_as_positive_float(
            section.get("long_break_seconds", defaults.long_break_seconds),
            "cycle.long_break_seconds",
        ),
        reannounce_seconds=_as_positive_float(
            section.get("reannounce_seconds", defaults.reannounce_seconds),
            "cycle.reannounce_seconds",
        ),
        stale_drain_seconds=drain,
        action_queue_size=queue_size,
    )


def _parse_protocol_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> ProtocolSettings:
    defaults = ProtocolSettings()
    socket_path = _as_str(
        section.get("socket_path", defaults.socket_path),
        "protocol.socket_path",
    )
    if not socket_path:
        raise AppConfigurationError("protocol.socket_path cannot be empty.")
    return ProtocolSettings(
        socket_path=_resolve_path(base_dir, socket_path),
        connection_timeout_seconds=_as_positive_float(
            section.get(
                "connection_timeout_seconds",
                defaults.connection_timeout_seconds,
            ),
            "protocol.connection_timeout_seconds",
        ),
    )


def _parse_notifier_settings(section: Mapping[str, Any]) -> NotifierSettings:
    defaults = NotifierSettings()
    enabled = _as_bool(section.get("enabled", defaults.enabled), "notifier.enabled")
    program = _as_str(section.get("program", defaults.program), "notifier.program")
    if enabled and not program:
        raise AppConfigurationError("notifier.program is required when enabled.")

    urgency = _as_str(section.get("urgency", defaults.urgency), "notifier.urgency").lower()
    if urgency not in _ALLOWED_URGENCIES:
        allowed = ", ".join(sorted(_ALLOWED_URGENCIES))
        raise AppConfigurationError(f"notifier.urgency must be one of: {allowed}.")

    timeout_seconds = _as_float(
        section.get("timeout_seconds", defaults.timeout_seconds),
        "notifier.timeout_seconds",
    )
    if timeout_seconds < 0:
        raise AppConfigurationError("notifier.timeout_seconds must not be negative.")

    return NotifierSettings(
        enabled=enabled,
        program=program,
        app_name=_as_str(section.get("app_name", defaults.app_name), "notifier.app_name")
        or defaults.app_name,
        urgency=urgency,
        timeout_seconds=timeout_seconds,
    )


def _parse_status_feed_settings(section: Mapping[str, Any]) -> StatusFeedSettings:
    defaults = StatusFeedSettings()
    host = _as_str(section.get("host", defaults.host), "status_feed.host")
    if not host:
        raise AppConfigurationError("status_feed.host cannot be empty.")
    port = _as_int(section.get("port", defaults.port), "status_feed.port")
    if not 1 <= port <= 65535:
        raise AppConfigurationError(
            f"status_feed.port must be in [1, 65535], got: {port}"
        )
    return StatusFeedSettings(
        enabled=_as_bool(section.get("enabled", defaults.enabled), "status_feed.enabled"),
        host=host,
        port=port,
    )


def _section(root: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw = root.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise AppConfigurationError(f"[{name}] must be a table.")
    return raw


def _as_str(value: Any, field: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    raise AppConfigurationError(f"{field} must be a string.")


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    raise AppConfigurationError(f"{field} must be a boolean.")


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be an integer.") from error
    raise AppConfigurationError(f"{field} must be an integer.")


def _as_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be a float.")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be a float.") from error
    raise AppConfigurationError(f"{field} must be a float.")


def _as_positive_float(value: Any, field: str) -> float:
    number = _as_float(value, field)
    if number <= 0:
        raise AppConfigurationError(f"{field} must be positive.")
    return number


def _resolve_path(base_dir: Path, raw: str) -> str:
    if not raw:
        return ""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)
