"""Shared test helpers for Sandoro."""

from sandoro.timer.engine import NANOS_PER_SECOND, TimerEngine


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class FakeClock:
    """Monotonic nanosecond clock that only moves when told to."""

    def __init__(self, start_ns: int = 1_000 * NANOS_PER_SECOND):
        self.now = start_ns

    def __call__(self) -> int:
        return self.now

    def advance_ns(self, ns: int) -> None:
        self.now += ns

    def advance_ms(self, ms: int) -> None:
        self.now += ms * 1_000_000

    def advance(self, seconds: int) -> None:
        self.now += seconds * NANOS_PER_SECOND


class FakeNotifier:
    """Records which phases were announced."""

    def __init__(self):
        self.phases: list = []
        self.settings = None

    def notify(self, phase) -> None:
        self.phases.append(phase)

    def set_settings(self, settings) -> None:
        self.settings = settings


def run_for(engine: TimerEngine, clock: FakeClock, seconds: int, step_ms: int = 100) -> None:
    """Tick *engine* every *step_ms* until *seconds* of clock time pass."""
    steps = seconds * 1000 // step_ms
    for _ in range(steps):
        clock.advance_ms(step_ms)
        engine.tick()


def snapshot(engine: TimerEngine) -> tuple:
    """Every observable field, for equality checks."""
    return (
        engine.phase,
        engine.remaining_seconds,
        engine.elapsed_seconds,
        engine.total_seconds,
        engine.is_paused,
        engine.is_flowtime,
        engine.session_count,
        engine.flowtime_break_seconds,
    )
