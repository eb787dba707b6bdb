"""Qt host loop around :class:`TimerEngine`.

The controller owns the only engine instance.  A ``QTimer`` polls
``engine.tick()`` every :data:`POLL_INTERVAL_MS` while the engine is
running; each user action goes through the controller so completions
can be recorded and announced in one place.

Signals
-------
tick(display: str)
    Emitted whenever the displayed ``MM:SS`` value changes.
state_changed(phase: Phase)
    Emitted after every action or transition.
phase_completed(data: dict)
    Emitted when an interval ends.  Keys: ``phase``, ``completed``,
    ``duration_seconds``, ``session_count``.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal
from sqlalchemy.exc import SQLAlchemyError

from ..notifier import Notifier
from ..recorder import SessionRecorder, TodayStats
from ..settings import Settings, save_settings
from .engine import Phase, TimerEngine

logger = logging.getLogger(__name__)

POLL_INTERVAL_MS = 100


def _in_flow(engine: TimerEngine) -> bool:
    """True during flowtime work or the break it earned."""
    if not engine.is_flowtime:
        return False
    return engine.is_counting_up or (
        engine.phase is Phase.SHORT_BREAK and engine.flowtime_break_seconds > 0
    )


class TimerController(QObject):
    """Drives a :class:`TimerEngine` and fans out its completions."""

    tick = pyqtSignal(str)
    state_changed = pyqtSignal(object)
    phase_completed = pyqtSignal(object)

    def __init__(
        self,
        settings: Settings,
        parent: QObject | None = None,
        *,
        recorder: Optional[SessionRecorder] = None,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], int] = time.monotonic_ns,
    ) -> None:
        super().__init__(parent)
        self._settings = settings
        self._recorder = recorder
        self._notifier = notifier
        self._clock = clock

        self._engine = self._build_engine(settings)
        self._session_id: int | None = None
        self._last_display: str = self._engine.formatted_display_time()

        self._poll_timer = QTimer(self)
        self._poll_timer.setInterval(POLL_INTERVAL_MS)
        self._poll_timer.timeout.connect(self._on_poll)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def engine(self) -> TimerEngine:
        return self._engine

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def is_polling(self) -> bool:
        return self._poll_timer.isActive()

    @property
    def can_snooze(self) -> bool:
        return (
            self._settings.break_snooze_enabled
            and self._engine.phase.is_break
        )

    def today_stats(self) -> TodayStats:
        if self._recorder is None:
            return TodayStats()
        try:
            return self._recorder.today_stats()
        except SQLAlchemyError:
            logger.exception("Could not read today's stats")
            return TodayStats()

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def toggle_pause(self) -> None:
        """Start, pause, or resume the current interval."""
        self._engine.toggle_pause()
        if not self._engine.is_paused and self._session_id is None:
            self._open_row()
        self._changed()

    def reset(self) -> None:
        """Restart the current interval.  The open row is abandoned."""
        self._session_id = None
        self._engine.reset()
        self._changed()

    def full_reset(self) -> None:
        """Back to work session 1.  The open row is abandoned."""
        self._session_id = None
        self._engine.full_reset()
        self._changed()

    def skip(self) -> None:
        """End the current interval early; recorded as not completed."""
        old_phase = self._engine.phase
        spent = self._engine.phase_elapsed_seconds()
        self._engine.skip()
        if self._engine.phase is not old_phase:
            self._finish(old_phase, completed=False, duration_seconds=spent)
        else:
            self._changed()

    def end_work(self) -> None:
        """Close a flowtime work interval; recorded as completed."""
        if not self._engine.is_counting_up:
            return
        spent = self._engine.elapsed_seconds
        self._engine.end_work()
        self._finish(Phase.WORK, completed=True, duration_seconds=spent)

    def snooze(self) -> bool:
        """Extend the current break by the configured snooze length."""
        if not self.can_snooze:
            return False
        self._engine.add_time(self._settings.snooze_minutes * 60)
        self._changed()
        return True

    def set_flowtime(self, enabled: bool) -> None:
        """Switch timing mode and persist it like a dialog edit."""
        self._settings.flowtime = bool(enabled)
        try:
            save_settings(self._settings)
        except OSError:
            logger.exception("Could not save settings")
        self._engine.set_flowtime(enabled)
        self._changed()

    def apply_settings(self, settings: Settings) -> None:
        """Adopt edited settings, rebuilding the engine when needed.

        A duration-only edit keeps the current phase and session number;
        changing the cycle length starts a fresh cycle.  An unfinished
        flow (count-up work or its earned break) carries over with its
        history row still open; any other interval in progress is
        recorded as not completed.
        """
        e = self._engine
        old_key = (
            e.work_duration,
            e.short_break_duration,
            e.long_break_duration,
            e.sessions_until_long_break,
        )
        self._settings = settings
        if self._notifier is not None:
            self._notifier.set_settings(settings)

        if settings.timer_key() != old_key:
            previous = self._engine
            self._engine = self._build_engine(settings)
            same_cycle = (
                settings.sessions_until_long_break == previous.sessions_until_long_break
            )
            keeps_flow = same_cycle and self._engine.is_flowtime and _in_flow(previous)

            if keeps_flow:
                self._engine.restore_position(
                    previous.phase,
                    previous.session_count,
                    elapsed_seconds=previous.elapsed_seconds,
                    flowtime_break_seconds=previous.flowtime_break_seconds,
                )
                if not previous.is_paused:
                    self._engine.toggle_pause()
            else:
                self._close_row(
                    completed=False,
                    duration_seconds=previous.phase_elapsed_seconds(),
                )
                if same_cycle:
                    self._engine.restore_position(previous.phase, previous.session_count)
            logger.info(
                "Timer rebuilt: work=%s short=%s long=%s cycle=%s",
                *settings.timer_key(),
            )
        elif settings.flowtime != self._engine.is_flowtime:
            self._engine.set_flowtime(settings.flowtime)
        self._changed()

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — polling
    # ══════════════════════════════════════════════════════════════════

    def _on_poll(self) -> None:
        old_phase = self._engine.phase
        total = self._engine.total_seconds
        if self._engine.tick():
            self._finish(old_phase, completed=True, duration_seconds=total, natural=True)
            return
        self._emit_tick()

    def _finish(
        self,
        old_phase: Phase,
        *,
        completed: bool,
        duration_seconds: int,
        natural: bool = False,
    ) -> None:
        self._close_row(completed=completed, duration_seconds=duration_seconds)

        if natural and self._notifier is not None:
            self._notifier.notify(old_phase)

        logger.info(
            "%s finished: completed=%s duration=%ss",
            old_phase.value,
            completed,
            duration_seconds,
        )
        self.phase_completed.emit({
            "phase": old_phase,
            "completed": completed,
            "duration_seconds": duration_seconds,
            "session_count": self._engine.session_count,
        })

        if natural and self._settings.auto_start:
            self._engine.toggle_pause()
            self._open_row()
        self._changed()

    def _changed(self) -> None:
        if self._engine.is_paused:
            self._poll_timer.stop()
        elif not self._poll_timer.isActive():
            self._poll_timer.start()
        self.state_changed.emit(self._engine.phase)
        self._emit_tick(force=True)

    def _emit_tick(self, force: bool = False) -> None:
        display = self._engine.formatted_display_time()
        if force or display != self._last_display:
            self._last_display = display
            self.tick.emit(display)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — engine & persistence
    # ══════════════════════════════════════════════════════════════════

    def _build_engine(self, settings: Settings) -> TimerEngine:
        engine = TimerEngine(*settings.timer_key(), clock=self._clock)
        engine.set_flowtime(settings.flowtime)
        return engine

    def _open_row(self) -> None:
        if self._recorder is None:
            return
        self._session_id = self._record(self._recorder.start, self._engine.phase)

    def _close_row(self, *, completed: bool, duration_seconds: int) -> None:
        if self._session_id is None:
            return
        session_id, self._session_id = self._session_id, None
        self._record(
            self._recorder.finish,
            session_id,
            completed=completed,
            duration_seconds=duration_seconds,
        )

    def _record(self, fn, *args, **kwargs):
        """Run a recorder call; history failures never stop the clock."""
        if self._recorder is None:
            return None
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError:
            logger.exception("Session history write failed")
            return None
