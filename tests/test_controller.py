"""Tests for the Qt host loop around the timer engine.

Poll ticks are driven by calling ``_on_poll()`` directly with the fake
clock, so no event loop is needed.
"""

from dataclasses import replace

import pytest
from sqlalchemy.exc import SQLAlchemyError

from sandoro.database import Session, get_session
from sandoro.settings import Settings, load_settings
from sandoro.timer.controller import TimerController
from sandoro.timer.engine import Phase

from helpers import SignalCollector


def _rows():
    with get_session() as db:
        return db.query(Session).order_by(Session.id).all()


def _poll_for(controller, clock, seconds, step_ms=100):
    for _ in range(seconds * 1000 // step_ms):
        clock.advance_ms(step_ms)
        controller._on_poll()


class FailingRecorder:
    """Recorder whose every write raises, as if the disk were gone."""

    def start(self, phase):
        raise SQLAlchemyError("database is locked")

    def finish(self, session_id, *, completed, duration_seconds):
        raise SQLAlchemyError("database is locked")

    def today_stats(self):
        raise SQLAlchemyError("database is locked")


# ═══════════════════════════════════════════════════════════════════════════
#  POLLING
# ═══════════════════════════════════════════════════════════════════════════


class TestPolling:

    def test_idle_until_started(self, controller):
        assert controller.is_polling is False
        assert controller.engine.is_paused is True

    def test_start_begins_polling(self, controller):
        controller.toggle_pause()
        assert controller.is_polling is True

    def test_pause_stops_polling(self, controller):
        controller.toggle_pause()
        controller.toggle_pause()
        assert controller.is_polling is False

    def test_tick_signal_only_on_display_change(self, controller, clock):
        ticks = SignalCollector()
        controller.tick.connect(ticks)
        controller.toggle_pause()
        assert ticks.items == ["25:00"]

        for _ in range(9):
            clock.advance_ms(100)
            controller._on_poll()
        assert len(ticks) == 1

        clock.advance_ms(100)
        controller._on_poll()
        assert ticks.last == "24:59"

    def test_state_changed_carries_phase(self, controller):
        states = SignalCollector()
        controller.state_changed.connect(states)
        controller.skip()
        assert states.last is Phase.SHORT_BREAK

    def test_long_stall_is_caught_up(self, controller, clock):
        controller.toggle_pause()
        clock.advance(90)
        controller._on_poll()
        assert controller.engine.remaining_seconds == 1500 - 90


# ═══════════════════════════════════════════════════════════════════════════
#  NATURAL COMPLETION
# ═══════════════════════════════════════════════════════════════════════════


class TestCompletion:

    def test_work_completion_is_recorded(self, controller, clock):
        controller.toggle_pause()
        _poll_for(controller, clock, 1500, step_ms=500)

        rows = _rows()
        assert len(rows) == 1
        assert rows[0].session_type == "work"
        assert rows[0].completed is True
        assert rows[0].duration_seconds == 1500
        assert rows[0].ended_at is not None

    def test_completion_notifies_finished_phase(self, controller, clock, notifier):
        controller.toggle_pause()
        clock.advance(1500)
        controller._on_poll()
        assert notifier.phases == [Phase.WORK]

    def test_completion_emits_phase_completed(self, controller, clock):
        done = SignalCollector()
        controller.phase_completed.connect(done)
        controller.toggle_pause()
        clock.advance(1500)
        controller._on_poll()
        assert done.last == {
            "phase": Phase.WORK,
            "completed": True,
            "duration_seconds": 1500,
            "session_count": 1,
        }

    def test_lands_paused_without_auto_start(self, controller, clock):
        controller.toggle_pause()
        clock.advance(1500)
        controller._on_poll()
        assert controller.engine.phase is Phase.SHORT_BREAK
        assert controller.engine.is_paused is True
        assert controller.is_polling is False

    def test_auto_start_resumes_and_opens_row(self, controller, clock, settings):
        settings.auto_start = True
        controller.toggle_pause()
        clock.advance(1500)
        controller._on_poll()
        assert controller.engine.phase is Phase.SHORT_BREAK
        assert controller.engine.is_paused is False
        assert controller.is_polling is True
        rows = _rows()
        assert [r.session_type for r in rows] == ["work", "short_break"]
        assert rows[1].completed is False

    def test_snoozed_break_records_full_length(self, controller, clock):
        controller.skip()
        controller.toggle_pause()
        assert controller.snooze() is True
        clock.advance(600)
        controller._on_poll()
        rows = _rows()
        assert rows[-1].session_type == "short_break"
        assert rows[-1].duration_seconds == 600

    def test_today_stats_counts_completed_work(self, controller, clock):
        controller.toggle_pause()
        clock.advance(1500)
        controller._on_poll()
        stats = controller.today_stats()
        assert stats.sessions_completed == 1
        assert stats.work_seconds == 1500


# ═══════════════════════════════════════════════════════════════════════════
#  USER ACTIONS
# ═══════════════════════════════════════════════════════════════════════════


class TestActions:

    def test_skip_records_incomplete(self, controller, clock, notifier):
        controller.toggle_pause()
        clock.advance(60)
        controller._on_poll()
        controller.skip()
        rows = _rows()
        assert rows[0].completed is False
        assert rows[0].duration_seconds == 60
        assert notifier.phases == []

    def test_skip_never_auto_starts(self, controller, settings):
        settings.auto_start = True
        controller.toggle_pause()
        controller.skip()
        assert controller.engine.is_paused is True

    def test_skip_while_idle_writes_nothing(self, controller):
        done = SignalCollector()
        controller.phase_completed.connect(done)
        controller.skip()
        assert _rows() == []
        assert done.last["completed"] is False

    def test_reset_abandons_open_row(self, controller, clock):
        controller.toggle_pause()
        clock.advance(30)
        controller._on_poll()
        controller.reset()
        assert controller.engine.remaining_seconds == 1500
        assert controller.is_polling is False

        controller.toggle_pause()
        rows = _rows()
        assert len(rows) == 2
        assert rows[0].ended_at is None
        assert rows[0].completed is False

    def test_full_reset_returns_to_session_one(self, controller):
        for _ in range(3):
            controller.skip()
        controller.full_reset()
        assert controller.engine.phase is Phase.WORK
        assert controller.engine.session_count == 1

    def test_end_work_records_completed_flow(self, controller, clock, notifier):
        controller.set_flowtime(True)
        controller.toggle_pause()
        _poll_for(controller, clock, 613, step_ms=1000)
        controller.end_work()

        assert controller.engine.phase is Phase.SHORT_BREAK
        assert controller.engine.remaining_seconds == 122
        rows = _rows()
        assert rows[0].completed is True
        assert rows[0].duration_seconds == 613
        assert notifier.phases == []

    def test_end_work_outside_flowtime_is_ignored(self, controller):
        done = SignalCollector()
        controller.phase_completed.connect(done)
        controller.end_work()
        assert len(done) == 0
        assert controller.engine.phase is Phase.WORK

    def test_set_flowtime_updates_settings(self, controller, settings):
        controller.set_flowtime(True)
        assert settings.flowtime is True
        assert controller.engine.is_flowtime is True

    def test_set_flowtime_is_saved(self, controller, settings_path):
        controller.set_flowtime(True)
        assert settings_path.exists()
        assert load_settings().flowtime is True
        controller.set_flowtime(False)
        assert load_settings().flowtime is False


# ═══════════════════════════════════════════════════════════════════════════
#  SNOOZE
# ═══════════════════════════════════════════════════════════════════════════


class TestSnooze:

    def test_not_during_work(self, controller):
        assert controller.can_snooze is False
        assert controller.snooze() is False
        assert controller.engine.remaining_seconds == 1500

    def test_extends_break(self, controller):
        controller.skip()
        assert controller.can_snooze is True
        assert controller.snooze() is True
        assert controller.engine.remaining_seconds == 600

    def test_uses_configured_length(self, controller, settings):
        settings.snooze_minutes = 2
        controller.skip()
        controller.snooze()
        assert controller.engine.remaining_seconds == 420

    def test_disabled_by_setting(self, controller, settings):
        settings.break_snooze_enabled = False
        controller.skip()
        assert controller.snooze() is False
        assert controller.engine.remaining_seconds == 300


# ═══════════════════════════════════════════════════════════════════════════
#  SETTINGS CHANGES
# ═══════════════════════════════════════════════════════════════════════════


class TestApplySettings:

    def test_duration_edit_keeps_position(self, controller):
        controller.skip()
        controller.skip()
        controller.skip()  # short break, session 2
        controller.apply_settings(Settings(short_break_duration=10))
        assert controller.engine.phase is Phase.SHORT_BREAK
        assert controller.engine.session_count == 2
        assert controller.engine.remaining_seconds == 600
        assert controller.engine.is_paused is True

    def test_cycle_length_edit_starts_fresh(self, controller):
        controller.skip()
        controller.skip()
        controller.apply_settings(Settings(sessions_until_long_break=6))
        assert controller.engine.phase is Phase.WORK
        assert controller.engine.session_count == 1
        assert controller.engine.sessions_until_long_break == 6

    def test_mutated_shared_settings_still_rebuild(self, controller, settings):
        settings.work_duration = 50
        controller.apply_settings(settings)
        assert controller.engine.remaining_seconds == 50 * 60

    def test_flowtime_only_edit_keeps_engine(self, controller):
        engine = controller.engine
        controller.apply_settings(Settings(flowtime=True))
        assert controller.engine is engine
        assert engine.is_flowtime is True

    def test_new_settings_reach_notifier(self, controller, notifier):
        new = Settings(sound_enabled=False)
        controller.apply_settings(new)
        assert notifier.settings is new
        assert controller.settings is new

    def test_rebuild_stops_polling(self, controller):
        controller.toggle_pause()
        controller.apply_settings(Settings(work_duration=30))
        assert controller.is_polling is False

    def test_rebuild_records_interrupted_interval(self, controller, clock):
        controller.toggle_pause()
        clock.advance(90)
        controller._on_poll()
        controller.apply_settings(Settings(work_duration=30))
        rows = _rows()
        assert len(rows) == 1
        assert rows[0].completed is False
        assert rows[0].duration_seconds == 90
        assert rows[0].ended_at is not None

    def test_duration_edit_keeps_running_flow(self, controller, clock, settings):
        controller.set_flowtime(True)
        controller.toggle_pause()
        _poll_for(controller, clock, 2400, step_ms=1000)
        controller.apply_settings(replace(settings, long_break_duration=20))

        assert controller.engine.long_break_duration == 20
        assert controller.engine.is_counting_up is True
        assert controller.engine.elapsed_seconds == 2400
        assert controller.engine.is_paused is False
        assert controller.is_polling is True
        assert _rows()[0].ended_at is None  # same flow, still open

        _poll_for(controller, clock, 10, step_ms=1000)
        controller.end_work()
        rows = _rows()
        assert len(rows) == 1
        assert rows[0].completed is True
        assert rows[0].duration_seconds == 2410
        assert controller.engine.remaining_seconds == 482

    def test_duration_edit_keeps_earned_break(self, controller, clock, settings):
        controller.set_flowtime(True)
        controller.toggle_pause()
        _poll_for(controller, clock, 3000, step_ms=1000)
        controller.end_work()
        assert controller.engine.remaining_seconds == 600

        controller.apply_settings(replace(settings, long_break_duration=20))
        assert controller.engine.phase is Phase.SHORT_BREAK
        assert controller.engine.remaining_seconds == 600
        assert controller.engine.flowtime_break_seconds == 600

    def test_leaving_flowtime_in_same_edit_drops_flow(self, controller, clock, settings):
        controller.set_flowtime(True)
        controller.toggle_pause()
        _poll_for(controller, clock, 120, step_ms=1000)
        controller.apply_settings(replace(settings, work_duration=30, flowtime=False))
        assert controller.engine.is_flowtime is False
        assert controller.engine.remaining_seconds == 30 * 60
        assert _rows()[0].completed is False
        assert _rows()[0].duration_seconds == 120


# ═══════════════════════════════════════════════════════════════════════════
#  HISTORY FAILURES
# ═══════════════════════════════════════════════════════════════════════════


class TestHistoryFailures:

    @pytest.fixture
    def flaky(self, qapp, settings, clock, notifier):
        return TimerController(
            settings,
            recorder=FailingRecorder(),
            notifier=notifier,
            clock=clock,
        )

    def test_timer_keeps_running(self, flaky, clock, notifier):
        flaky.toggle_pause()
        assert flaky.is_polling is True
        clock.advance(1500)
        flaky._on_poll()
        assert flaky.engine.phase is Phase.SHORT_BREAK
        assert notifier.phases == [Phase.WORK]

    def test_stats_fall_back_to_zero(self, flaky):
        stats = flaky.today_stats()
        assert stats.sessions_completed == 0
        assert stats.work_seconds == 0

    def test_without_recorder(self, qapp, settings, clock):
        controller = TimerController(settings, clock=clock)
        controller.toggle_pause()
        clock.advance(1500)
        controller._on_poll()
        assert controller.engine.phase is Phase.SHORT_BREAK
        assert controller.today_stats().sessions_completed == 0
