"""Timer state machine for Sandoro.

Phases
------
WORK          Focus interval.  Counts down in classic mode, up in flowtime.
SHORT_BREAK   Short rest.  Always counts down.
LONG_BREAK    Long rest after a full cycle.  Always counts down.

Transitions
-----------
WORK → LONG_BREAK       (countdown hits 0 or skip, last session of cycle)
WORK → SHORT_BREAK      (countdown hits 0 or skip, otherwise)
WORK → SHORT_BREAK      (end_work, flowtime only; break = work / 5)
SHORT_BREAK → WORK      (session_count += 1)
LONG_BREAK → WORK       (session_count = 1)

Every transition lands paused.  The host decides whether to resume.

Timing
------
The engine never assumes how often ``tick()`` is called.  Each call
charges the real monotonic time since the previous call into a
nanosecond accumulator and drains it one whole second at a time, so N
irregular calls spanning T seconds always consume exactly ``floor(T)``
simulated seconds.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Optional


# ── enums ─────────────────────────────────────────────────────────────────


class Phase(Enum):
    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def label(self) -> str:
        return _PHASE_LABELS[self]

    @property
    def is_break(self) -> bool:
        return self is not Phase.WORK


class TimingMode(Enum):
    CLASSIC = "classic"
    FLOWTIME = "flowtime"


# ── constants ─────────────────────────────────────────────────────────────

DEFAULT_WORK_MINUTES = 25
DEFAULT_SHORT_BREAK_MINUTES = 5
DEFAULT_LONG_BREAK_MINUTES = 15
DEFAULT_SESSIONS_UNTIL_LONG_BREAK = 4

FLOWTIME_BREAK_DIVISOR = 5
FLOWTIME_MIN_BREAK_SECONDS = 60

NANOS_PER_SECOND = 1_000_000_000

_PHASE_LABELS: dict[Phase, str] = {
    Phase.WORK: "WORKING",
    Phase.SHORT_BREAK: "SHORT BREAK",
    Phase.LONG_BREAK: "LONG BREAK",
}


# ── engine ────────────────────────────────────────────────────────────────


class TimerEngine:
    """Pomodoro timer driven by a polling host loop.

    The engine owns no timer of its own: the host calls :meth:`tick` as
    often as it likes and every other method returns immediately.  All
    operations are total; mode-specific calls made in the wrong mode are
    no-ops.

    ``clock`` must return monotonic integer nanoseconds.  Tests inject a
    fake clock to drive time deterministically.
    """

    def __init__(
        self,
        work_minutes: int = DEFAULT_WORK_MINUTES,
        short_break_minutes: int = DEFAULT_SHORT_BREAK_MINUTES,
        long_break_minutes: int = DEFAULT_LONG_BREAK_MINUTES,
        sessions_until_long_break: int = DEFAULT_SESSIONS_UNTIL_LONG_BREAK,
        *,
        clock: Callable[[], int] = time.monotonic_ns,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        # ── configuration (fixed for the engine's lifetime) ───────────
        self._work_duration = int(work_minutes)
        self._short_break_duration = int(short_break_minutes)
        self._long_break_duration = int(long_break_minutes)
        self._sessions_until_long_break = int(sessions_until_long_break)
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

        # ── cycle state ───────────────────────────────────────────────
        self._phase = Phase.WORK
        self._session_count = 1
        self._is_paused = True
        self._is_flowtime = False

        # ── counters ──────────────────────────────────────────────────
        self._remaining_seconds = self._work_duration * 60
        self._total_seconds = self._remaining_seconds  # grows with add_time()
        self._elapsed_seconds = 0
        self._flowtime_break_seconds = 0

        # ── drift correction ──────────────────────────────────────────
        self._last_tick_ns = self._clock()
        self._accumulated_ns = 0

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def remaining_seconds(self) -> int:
        return self._remaining_seconds

    @property
    def elapsed_seconds(self) -> int:
        """Count-up value; only meaningful during flowtime work."""
        return self._elapsed_seconds

    @property
    def total_seconds(self) -> int:
        """Length the current countdown was armed with, plus snoozes."""
        return self._total_seconds

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def is_flowtime(self) -> bool:
        return self._is_flowtime

    @property
    def mode(self) -> TimingMode:
        return TimingMode.FLOWTIME if self._is_flowtime else TimingMode.CLASSIC

    @property
    def is_counting_up(self) -> bool:
        """True when the count-up counter is authoritative."""
        return self._is_flowtime and self._phase is Phase.WORK

    @property
    def work_duration(self) -> int:
        return self._work_duration

    @property
    def short_break_duration(self) -> int:
        return self._short_break_duration

    @property
    def long_break_duration(self) -> int:
        return self._long_break_duration

    @property
    def sessions_until_long_break(self) -> int:
        return self._sessions_until_long_break

    @property
    def session_count(self) -> int:
        """Position in the current cycle (1-based)."""
        return self._session_count

    @property
    def flowtime_break_seconds(self) -> int:
        return self._flowtime_break_seconds

    def duration_for(self, phase: Phase) -> int:
        """Configured duration of *phase* in minutes."""
        if phase is Phase.WORK:
            return self._work_duration
        if phase is Phase.SHORT_BREAK:
            return self._short_break_duration
        return self._long_break_duration

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def set_flowtime(self, enabled: bool) -> None:
        self._is_flowtime = bool(enabled)
        if self._is_flowtime and self._phase is Phase.WORK:
            self._elapsed_seconds = 0

    def tick(self) -> bool:
        """Advance simulated time by the real time since the last call.

        Returns True if the countdown reached zero and the engine moved
        to the next phase.
        """
        now = self._clock()
        if self._is_paused:
            self._last_tick_ns = now
            return False

        self._accumulated_ns += max(0, now - self._last_tick_ns)
        self._last_tick_ns = now

        whole, self._accumulated_ns = divmod(self._accumulated_ns, NANOS_PER_SECOND)
        if whole:
            if self.is_counting_up:
                self._elapsed_seconds += whole
            else:
                self._remaining_seconds = max(0, self._remaining_seconds - whole)

        if not self.is_counting_up and self._remaining_seconds == 0:
            self._advance()
            return True
        return False

    def toggle_pause(self) -> None:
        self._is_paused = not self._is_paused
        if not self._is_paused:
            self._last_tick_ns = self._clock()

    def reset(self) -> None:
        """Restart the current interval from scratch."""
        if self.is_counting_up:
            self._elapsed_seconds = 0
        else:
            self._arm(self._armed_length())
        self._halt()

    def full_reset(self) -> None:
        """Back to the first work session of a fresh cycle."""
        self._phase = Phase.WORK
        self._session_count = 1
        self._arm(self._work_duration * 60)
        self._elapsed_seconds = 0
        self._flowtime_break_seconds = 0
        self._halt()

    def restore_position(
        self,
        phase: Phase,
        session_count: int,
        *,
        elapsed_seconds: int = 0,
        flowtime_break_seconds: int = 0,
    ) -> None:
        """Jump to *phase* at *session_count*, freshly armed and paused.

        Used when a settings edit replaces the engine but the user's
        place in the cycle should survive.  *session_count* is clamped
        into this engine's cycle length.  In flowtime, *elapsed_seconds*
        carries the count-up of an unfinished work interval and
        *flowtime_break_seconds* re-arms an earned short break.
        """
        self._phase = phase
        self._session_count = max(1, min(int(session_count), self._sessions_until_long_break))
        self._flowtime_break_seconds = max(0, int(flowtime_break_seconds))
        self._arm(self._armed_length())
        self._elapsed_seconds = max(0, int(elapsed_seconds)) if self.is_counting_up else 0
        self._halt()

    def skip(self) -> None:
        """End the current interval now."""
        if self.is_counting_up:
            self.end_work()
        else:
            self._advance()

    def end_work(self) -> None:
        """Close a flowtime work interval and earn a proportional break."""
        if not self.is_counting_up:
            return
        break_seconds = max(
            FLOWTIME_MIN_BREAK_SECONDS,
            self._elapsed_seconds // FLOWTIME_BREAK_DIVISOR,
        )
        self._flowtime_break_seconds = break_seconds
        self._phase = Phase.SHORT_BREAK
        self._arm(break_seconds)
        self._halt()
        self._logger.debug(
            "Flowtime work ended after %ss; break=%ss",
            self._elapsed_seconds,
            break_seconds,
        )

    def add_time(self, seconds: int) -> None:
        """Snooze: extend the running countdown by *seconds*.

        Ignored during flowtime work, where no countdown is displayed.
        """
        if self.is_counting_up or seconds <= 0:
            return
        self._remaining_seconds += seconds
        self._total_seconds += seconds

    # ══════════════════════════════════════════════════════════════════
    #  QUERIES
    # ══════════════════════════════════════════════════════════════════

    def progress_percent(self) -> float:
        """0.0 → 100.0 through the current countdown."""
        if self.is_counting_up:
            return 0.0
        total = self._total_seconds
        if total <= 0:
            return 0.0
        done = (total - self._remaining_seconds) / total * 100.0
        return max(0.0, min(100.0, done))

    def phase_elapsed_seconds(self) -> int:
        """Seconds actually spent in the current interval so far."""
        if self.is_counting_up:
            return self._elapsed_seconds
        return max(0, self._total_seconds - self._remaining_seconds)

    def display_time(self) -> tuple[int, int]:
        value = self._elapsed_seconds if self.is_counting_up else self._remaining_seconds
        return divmod(value, 60)

    def formatted_display_time(self) -> str:
        minutes, seconds = self.display_time()
        if minutes < 100:
            return f"{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL
    # ══════════════════════════════════════════════════════════════════

    def _advance(self) -> None:
        """Move to the next phase per the cycle table."""
        previous = self._phase
        if previous is Phase.WORK:
            if self._session_count >= self._sessions_until_long_break:
                self._phase = Phase.LONG_BREAK
            else:
                self._phase = Phase.SHORT_BREAK
        elif previous is Phase.SHORT_BREAK:
            # Flowtime breaks never escalate, so the count saturates.
            if self._session_count < self._sessions_until_long_break:
                self._session_count += 1
            self._phase = Phase.WORK
        else:
            self._session_count = 1
            self._phase = Phase.WORK

        # Entering work always starts both counters fresh, so a later
        # mode switch never inherits a stale value.
        self._arm(self.duration_for(self._phase) * 60)
        if self._phase is Phase.WORK:
            self._elapsed_seconds = 0
        self._halt()
        self._logger.debug(
            "Phase %s -> %s (session %s/%s)",
            previous.value,
            self._phase.value,
            self._session_count,
            self._sessions_until_long_break,
        )

    def _armed_length(self) -> int:
        if (
            self._is_flowtime
            and self._phase is Phase.SHORT_BREAK
            and self._flowtime_break_seconds > 0
        ):
            return self._flowtime_break_seconds
        return self.duration_for(self._phase) * 60

    def _arm(self, seconds: int) -> None:
        self._remaining_seconds = seconds
        self._total_seconds = seconds

    def _halt(self) -> None:
        self._is_paused = True
        self._accumulated_ns = 0
