from __future__ import annotations

import json
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any

from .db import Mode

logger = logging.getLogger(__name__)

SETTINGS_DIR_NAME = ".focusos"
SETTINGS_FILE_NAME = "settings.json"

DEFAULT_WORK_MINUTES = 25.0
DEFAULT_BREAK_MINUTES = 5.0


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "y", "on"}:
            return True
        if normalized in {"0", "false", "no", "n", "off", ""}:
            return False
    return default


def _as_minutes(value: Any, default: float) -> float:
    try:
        minutes = float(value)
    except (TypeError, ValueError):
        return default
    if minutes <= 0 or minutes != minutes:
        return default
    return minutes


def minutes_to_seconds(minutes: float) -> int:
    if minutes <= 0:
        return 0
    seconds = int(round(minutes * 60))
    return max(1, seconds)


@dataclass(frozen=True)
class TimerSettings:
    work_minutes: float = DEFAULT_WORK_MINUTES
    break_minutes: float = DEFAULT_BREAK_MINUTES
    auto_advance: bool = False
    notifications_enabled: bool = False
    sound_enabled: bool = True

    def duration_for(self, mode: Mode) -> int:
        minutes = self.work_minutes if mode is Mode.WORK else self.break_minutes
        return max(1, minutes_to_seconds(minutes))

    def to_dict(self) -> dict[str, Any]:
        return {
            "work_minutes": self.work_minutes,
            "break_minutes": self.break_minutes,
            "auto_advance": self.auto_advance,
            "notifications_enabled": self.notifications_enabled,
            "sound_enabled": self.sound_enabled,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> TimerSettings:
        return cls(
            work_minutes=_as_minutes(payload.get("work_minutes"), DEFAULT_WORK_MINUTES),
            break_minutes=_as_minutes(payload.get("break_minutes"), DEFAULT_BREAK_MINUTES),
            auto_advance=_as_bool(payload.get("auto_advance", False), False),
            notifications_enabled=_as_bool(payload.get("notifications_enabled", False), False),
            sound_enabled=_as_bool(payload.get("sound_enabled", True), True),
        )


def default_settings_path(home: Path | None = None) -> Path:
    base = home if home is not None else Path.home()
    return base / SETTINGS_DIR_NAME / SETTINGS_FILE_NAME


def load_settings(path: Path | None = None) -> TimerSettings:
    target = path or default_settings_path()
    if not target.exists():
        return TimerSettings()
    try:
        with target.open("r", encoding="utf-8") as fp:
            payload = json.load(fp)
    except (OSError, ValueError) as exc:
        logger.warning("settings file %s unreadable, using defaults: %s", target, exc)
        return TimerSettings()
    if not isinstance(payload, dict):
        return TimerSettings()
    return TimerSettings.from_dict(payload)


def save_settings(settings: TimerSettings, path: Path | None = None) -> Path:
    target = path or default_settings_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    temp_path = target.with_suffix(target.suffix + ".tmp")
    with temp_path.open("w", encoding="utf-8") as fp:
        json.dump(settings.to_dict(), fp, indent=2, ensure_ascii=False, sort_keys=True)
        fp.write("\n")
    temp_path.replace(target)
    return target
