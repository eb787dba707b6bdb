"""Timer package."""

from .engine import (
    TimerEngine,
    Phase,
    TimingMode,
    DEFAULT_WORK_MINUTES,
    DEFAULT_SHORT_BREAK_MINUTES,
    DEFAULT_LONG_BREAK_MINUTES,
    DEFAULT_SESSIONS_UNTIL_LONG_BREAK,
    FLOWTIME_BREAK_DIVISOR,
    FLOWTIME_MIN_BREAK_SECONDS,
)

__all__ = [
    "TimerEngine",
    "Phase",
    "TimingMode",
    "DEFAULT_WORK_MINUTES",
    "DEFAULT_SHORT_BREAK_MINUTES",
    "DEFAULT_LONG_BREAK_MINUTES",
    "DEFAULT_SESSIONS_UNTIL_LONG_BREAK",
    "FLOWTIME_BREAK_DIVISOR",
    "FLOWTIME_MIN_BREAK_SECONDS",
]
