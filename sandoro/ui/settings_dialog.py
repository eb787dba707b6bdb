"""Settings dialog for Sandoro.

A modal dialog that lets users configure timer durations, timing mode,
snooze, audio, and notification preferences.  Changes are saved
immediately to disk and reported through ``settings_changed`` so the
app can rebuild the timer.
"""

from __future__ import annotations

from typing import Callable

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QFormLayout,
    QLabel, QSpinBox, QSlider, QCheckBox, QPushButton,
    QFrame, QWidget,
)

from ..settings import (
    DURATION_RANGE,
    SESSIONS_RANGE,
    SNOOZE_RANGE,
    Settings,
    save_settings,
)


class SettingsDialog(QDialog):
    """Modal dialog for all user preferences."""

    settings_changed = pyqtSignal(object)

    def __init__(
        self,
        settings: Settings,
        parent: QWidget | None = None,
        *,
        sound_preview_callback: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setMinimumWidth(420)
        self.setModal(True)

        self._settings = settings
        self._sound_preview = sound_preview_callback
        self._populating = False

        self._build_ui()
        self._populate()

    # ══════════════════════════════════════════════════════════════════
    #  BUILD UI
    # ══════════════════════════════════════════════════════════════════

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        root.setContentsMargins(24, 20, 24, 20)
        root.setSpacing(16)

        # ── Timer section ────────────────────────────────────────────
        root.addWidget(self._section_label("Timer"))
        timer_form = QFormLayout()
        timer_form.setHorizontalSpacing(20)
        timer_form.setVerticalSpacing(10)

        self._work_spin = self._minutes_spin(DURATION_RANGE)
        timer_form.addRow("Work duration:", self._work_spin)

        self._short_spin = self._minutes_spin(DURATION_RANGE)
        timer_form.addRow("Short break:", self._short_spin)

        self._long_spin = self._minutes_spin(DURATION_RANGE)
        timer_form.addRow("Long break:", self._long_spin)

        self._sessions_spin = QSpinBox()
        self._sessions_spin.setRange(*SESSIONS_RANGE)
        self._sessions_spin.valueChanged.connect(self._on_changed)
        timer_form.addRow("Sessions until long break:", self._sessions_spin)

        self._flowtime_cb = QCheckBox("Flowtime (work counts up, break = work / 5)")
        self._flowtime_cb.toggled.connect(self._on_changed)
        timer_form.addRow("", self._flowtime_cb)

        self._auto_start_cb = QCheckBox("Auto-start next interval")
        self._auto_start_cb.toggled.connect(self._on_changed)
        timer_form.addRow("", self._auto_start_cb)

        self._snooze_cb = QCheckBox("Allow snoozing breaks")
        self._snooze_cb.toggled.connect(self._on_changed)
        timer_form.addRow("", self._snooze_cb)

        self._snooze_spin = self._minutes_spin(SNOOZE_RANGE)
        timer_form.addRow("Snooze length:", self._snooze_spin)

        root.addLayout(timer_form)
        root.addWidget(self._separator())

        # ── Sound & Notifications section ────────────────────────────
        root.addWidget(self._section_label("Sound & Notifications"))
        snd_form = QFormLayout()
        snd_form.setHorizontalSpacing(20)
        snd_form.setVerticalSpacing(10)

        self._sound_cb = QCheckBox("Sound effects")
        self._sound_cb.toggled.connect(self._on_changed)
        snd_form.addRow("", self._sound_cb)

        vol_row = QHBoxLayout()
        vol_row.setSpacing(10)
        self._vol_slider = QSlider(Qt.Orientation.Horizontal)
        self._vol_slider.setRange(0, 100)
        self._vol_slider.setTickInterval(10)
        self._vol_label = QLabel("70%")
        self._vol_label.setMinimumWidth(36)
        self._vol_slider.valueChanged.connect(self._on_volume_changed)
        self._vol_slider.sliderReleased.connect(self._on_volume_released)
        vol_row.addWidget(self._vol_slider)
        vol_row.addWidget(self._vol_label)

        vol_wrapper = QWidget()
        vol_wrapper.setLayout(vol_row)
        snd_form.addRow("Volume:", vol_wrapper)

        self._notif_cb = QCheckBox("Desktop notifications")
        self._notif_cb.toggled.connect(self._on_changed)
        snd_form.addRow("", self._notif_cb)

        root.addLayout(snd_form)

        # ── close button ─────────────────────────────────────────────
        root.addStretch()
        btn_row = QHBoxLayout()
        btn_row.addStretch()
        close_btn = QPushButton("Close")
        close_btn.clicked.connect(self.accept)
        btn_row.addWidget(close_btn)
        root.addLayout(btn_row)

    # ── helpers ──────────────────────────────────────────────────────

    def _minutes_spin(self, bounds: tuple[int, int]) -> QSpinBox:
        spin = QSpinBox()
        spin.setRange(*bounds)
        spin.setSuffix(" min")
        spin.valueChanged.connect(self._on_changed)
        return spin

    @staticmethod
    def _section_label(text: str) -> QLabel:
        lbl = QLabel(text)
        lbl.setStyleSheet("font-size: 15px; font-weight: 700; margin-top: 4px;")
        return lbl

    @staticmethod
    def _separator() -> QFrame:
        line = QFrame()
        line.setFrameShape(QFrame.Shape.HLine)
        line.setFixedHeight(1)
        line.setStyleSheet("background-color: rgba(255,255,255,0.08);")
        return line

    # ══════════════════════════════════════════════════════════════════
    #  POPULATE FROM SETTINGS
    # ══════════════════════════════════════════════════════════════════

    def _populate(self) -> None:
        s = self._settings
        self._populating = True
        try:
            self._work_spin.setValue(s.work_duration)
            self._short_spin.setValue(s.short_break_duration)
            self._long_spin.setValue(s.long_break_duration)
            self._sessions_spin.setValue(s.sessions_until_long_break)
            self._flowtime_cb.setChecked(s.flowtime)
            self._auto_start_cb.setChecked(s.auto_start)
            self._snooze_cb.setChecked(s.break_snooze_enabled)
            self._snooze_spin.setValue(s.snooze_minutes)
            self._sound_cb.setChecked(s.sound_enabled)
            self._vol_slider.setValue(s.sound_volume)
            self._vol_label.setText(f"{s.sound_volume}%")
            self._notif_cb.setChecked(s.notifications_enabled)
        finally:
            self._populating = False

    # ══════════════════════════════════════════════════════════════════
    #  CHANGE HANDLERS — save immediately
    # ══════════════════════════════════════════════════════════════════

    def _on_changed(self) -> None:
        if self._populating:
            return
        s = self._settings
        s.work_duration = self._work_spin.value()
        s.short_break_duration = self._short_spin.value()
        s.long_break_duration = self._long_spin.value()
        s.sessions_until_long_break = self._sessions_spin.value()
        s.flowtime = self._flowtime_cb.isChecked()
        s.auto_start = self._auto_start_cb.isChecked()
        s.break_snooze_enabled = self._snooze_cb.isChecked()
        s.snooze_minutes = self._snooze_spin.value()
        s.sound_enabled = self._sound_cb.isChecked()
        s.notifications_enabled = self._notif_cb.isChecked()
        self._save()

    def _on_volume_changed(self, value: int) -> None:
        self._vol_label.setText(f"{value}%")
        if self._populating:
            return
        self._settings.sound_volume = value
        self._save()

    def _on_volume_released(self) -> None:
        """Play a click sound when the user releases the volume slider."""
        if self._sound_preview:
            self._sound_preview()

    def _save(self) -> None:
        save_settings(self._settings)
        self.settings_changed.emit(self._settings)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC
    # ══════════════════════════════════════════════════════════════════

    @property
    def settings(self) -> Settings:
        return self._settings
