"""Main timer display widget.

Layout (top → bottom):
    - Phase label (WORKING / SHORT BREAK / LONG BREAK, plus PAUSED)
    - Large MM:SS display (counts up during flowtime work)
    - Progress bar (hidden while counting up)
    - Session dots (one per work session in the cycle)
    - Action buttons: Start/Pause, Reset, Skip, context button
      (End work in flowtime, +N min snooze during breaks)
"""

from __future__ import annotations

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QPushButton, QFrame, QProgressBar,
)

from ..timer.controller import TimerController
from ..timer.engine import Phase


PHASE_COLORS: dict[Phase, str] = {
    Phase.WORK:        "#F38BA8",
    Phase.SHORT_BREAK: "#94E2D5",
    Phase.LONG_BREAK:  "#89B4FA",
}
MUTED_COLOR = "#7A7A9A"


class TimerWidget(QWidget):
    """The timer card: a pure view over the controller's engine."""

    def __init__(self, controller: TimerController, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._controller = controller
        self._dots: list[QLabel] = []
        self._build_ui()
        self._connect_signals()
        self._on_state_changed(controller.engine.phase)

    # ── build ─────────────────────────────────────────────────────────────

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)

        card = QFrame(self)
        card.setObjectName("card")
        root.addWidget(card)

        layout = QVBoxLayout(card)
        layout.setContentsMargins(32, 24, 32, 28)
        layout.setSpacing(12)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self._phase_label = QLabel(card)
        self._phase_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._phase_label.setStyleSheet("font-size: 16px; font-weight: 700; letter-spacing: 2px;")
        layout.addWidget(self._phase_label)

        self._time_label = QLabel("00:00", card)
        self._time_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._time_label.setStyleSheet("font-size: 64px; font-weight: 700;")
        layout.addWidget(self._time_label)

        self._progress = QProgressBar(card)
        self._progress.setRange(0, 1000)
        self._progress.setTextVisible(False)
        self._progress.setFixedHeight(8)
        layout.addWidget(self._progress)

        # ── session dots ─────────────────────────────────────────────
        self._dot_row = QHBoxLayout()
        self._dot_row.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._dot_row.setSpacing(10)
        layout.addLayout(self._dot_row)

        self._session_label = QLabel(card)
        self._session_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._session_label.setStyleSheet(f"color: {MUTED_COLOR};")
        layout.addWidget(self._session_label)

        # ── controls ─────────────────────────────────────────────────
        btn_row = QHBoxLayout()
        btn_row.setSpacing(12)
        btn_row.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self._reset_btn = QPushButton("Reset", card)
        self._start_pause_btn = QPushButton("Start", card)
        self._start_pause_btn.setObjectName("primaryButton")
        self._skip_btn = QPushButton("Skip", card)

        self._end_work_btn = QPushButton("End work", card)
        self._end_work_btn.setToolTip("Finish this flow and take the break you earned")

        self._snooze_btn = QPushButton(card)
        self._snooze_btn.setToolTip("Need a little longer?")

        for btn in (
            self._reset_btn, self._start_pause_btn, self._skip_btn,
            self._end_work_btn, self._snooze_btn,
        ):
            btn_row.addWidget(btn)
        layout.addLayout(btn_row)

    def _rebuild_dots(self, count: int) -> None:
        while self._dots:
            dot = self._dots.pop()
            self._dot_row.removeWidget(dot)
            dot.deleteLater()
        for _ in range(count):
            dot = QLabel("○", self)
            dot.setAlignment(Qt.AlignmentFlag.AlignCenter)
            self._dots.append(dot)
            self._dot_row.addWidget(dot)

    # ── signals ───────────────────────────────────────────────────────────

    def _connect_signals(self) -> None:
        c = self._controller
        self._start_pause_btn.clicked.connect(c.toggle_pause)
        self._reset_btn.clicked.connect(c.reset)
        self._skip_btn.clicked.connect(c.skip)
        self._end_work_btn.clicked.connect(c.end_work)
        self._snooze_btn.clicked.connect(c.snooze)

        c.tick.connect(self._refresh_display)
        c.state_changed.connect(self._on_state_changed)

    # ── slots ─────────────────────────────────────────────────────────────

    def _on_state_changed(self, phase: Phase) -> None:
        engine = self._controller.engine
        color = PHASE_COLORS[phase]

        label = phase.label
        if engine.is_flowtime and phase is Phase.WORK:
            label = "FLOW"
        if engine.is_paused:
            label = f"{label} · PAUSED"
        self._phase_label.setText(label)
        self._phase_label.setStyleSheet(
            f"font-size: 16px; font-weight: 700; letter-spacing: 2px; color: {color};"
        )

        self._start_pause_btn.setText("Start" if engine.is_paused else "Pause")

        # ── session dots ─────────────────────────────────────────────
        total = engine.sessions_until_long_break
        if len(self._dots) != total:
            self._rebuild_dots(total)
        done = engine.session_count - (1 if phase is Phase.WORK else 0)
        for i, dot in enumerate(self._dots):
            filled = i < done
            dot.setText("●" if filled else "○")
            dot.setStyleSheet(
                f"font-size: 18px; color: {color if filled else MUTED_COLOR};"
            )
        self._session_label.setText(f"Session {engine.session_count} of {total}")

        # ── context buttons ──────────────────────────────────────────
        self._end_work_btn.setVisible(engine.is_counting_up)
        self._snooze_btn.setVisible(self._controller.can_snooze)
        self._snooze_btn.setText(f"+{self._controller.settings.snooze_minutes} min")
        self._progress.setVisible(not engine.is_counting_up)

        self._refresh_display(engine.formatted_display_time())

    def _refresh_display(self, display: str) -> None:
        self._time_label.setText(display)
        pct = self._controller.engine.progress_percent()
        self._progress.setValue(round(pct * 10))
