"""Application settings with JSON persistence.

Settings are stored at:
    ~/.sandoro/settings.json

Usage::

    settings = load_settings()
    settings.work_duration = 50
    save_settings(settings)

Durations are in minutes.  ``load_settings`` always returns a validated
object, so the timer engine never sees a zero or absurd duration.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path

from .timer.engine import (
    DEFAULT_LONG_BREAK_MINUTES,
    DEFAULT_SESSIONS_UNTIL_LONG_BREAK,
    DEFAULT_SHORT_BREAK_MINUTES,
    DEFAULT_WORK_MINUTES,
)

logger = logging.getLogger(__name__)

APP_DATA_DIR = Path.home() / ".sandoro"
SETTINGS_PATH = APP_DATA_DIR / "settings.json"

# Inclusive bounds enforced by validate()
DURATION_RANGE = (1, 120)        # minutes
SESSIONS_RANGE = (1, 12)
SNOOZE_RANGE = (1, 30)           # minutes
VOLUME_RANGE = (0, 100)


@dataclass
class Settings:
    """All user-configurable preferences."""

    # ── timer ─────────────────────────────────────────────────────────
    work_duration: int = DEFAULT_WORK_MINUTES             # minutes
    short_break_duration: int = DEFAULT_SHORT_BREAK_MINUTES
    long_break_duration: int = DEFAULT_LONG_BREAK_MINUTES
    sessions_until_long_break: int = DEFAULT_SESSIONS_UNTIL_LONG_BREAK
    flowtime: bool = False
    auto_start: bool = False

    # ── snooze ────────────────────────────────────────────────────────
    break_snooze_enabled: bool = True
    snooze_minutes: int = 5

    # ── audio ─────────────────────────────────────────────────────────
    sound_enabled: bool = True
    sound_volume: int = 70                 # 0-100

    # ── notifications ─────────────────────────────────────────────────
    notifications_enabled: bool = True

    def timer_key(self) -> tuple[int, int, int, int]:
        """The values a timer engine is built from."""
        return (
            self.work_duration,
            self.short_break_duration,
            self.long_break_duration,
            self.sessions_until_long_break,
        )


def _clamp(value, bounds: tuple[int, int], default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    low, high = bounds
    return max(low, min(high, number))


def validate(settings: Settings) -> Settings:
    """Clamp every numeric field into range, in place.  Returns *settings*."""
    defaults = Settings()
    settings.work_duration = _clamp(
        settings.work_duration, DURATION_RANGE, defaults.work_duration,
    )
    settings.short_break_duration = _clamp(
        settings.short_break_duration, DURATION_RANGE, defaults.short_break_duration,
    )
    settings.long_break_duration = _clamp(
        settings.long_break_duration, DURATION_RANGE, defaults.long_break_duration,
    )
    settings.sessions_until_long_break = _clamp(
        settings.sessions_until_long_break, SESSIONS_RANGE,
        defaults.sessions_until_long_break,
    )
    settings.snooze_minutes = _clamp(
        settings.snooze_minutes, SNOOZE_RANGE, defaults.snooze_minutes,
    )
    settings.sound_volume = _clamp(
        settings.sound_volume, VOLUME_RANGE, defaults.sound_volume,
    )
    return settings


def load_settings() -> Settings:
    """Load settings from disk, falling back to defaults."""
    if not SETTINGS_PATH.exists():
        return Settings()
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", SETTINGS_PATH, exc)
        return Settings()
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: not a JSON object", SETTINGS_PATH)
        return Settings()

    # Only use keys that exist in the dataclass
    valid_keys = {f.name for f in fields(Settings)}
    filtered = {k: v for k, v in data.items() if k in valid_keys}
    return validate(Settings(**filtered))


def save_settings(settings: Settings) -> None:
    """Write settings to disk as JSON."""
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )
