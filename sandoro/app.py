"""Main application window: wires settings, history, sound and the timer."""

from __future__ import annotations

import dataclasses

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QColor, QIcon, QKeySequence, QPainter, QPixmap
from PyQt6.QtWidgets import (
    QApplication, QLabel, QMainWindow, QMenu, QSystemTrayIcon,
    QVBoxLayout, QWidget,
)

from .audio.sounds import SoundManager
from .notifier import Notifier
from .recorder import SessionRecorder
from .settings import Settings, load_settings
from .timer.controller import TimerController
from .timer.engine import Phase
from .ui.settings_dialog import SettingsDialog
from .ui.timer_widget import PHASE_COLORS, TimerWidget


def _make_tray_icon(phase: Phase) -> QIcon:
    """A filled circle in the phase colour."""
    pix = QPixmap(64, 64)
    pix.fill(QColor(0, 0, 0, 0))
    p = QPainter(pix)
    p.setRenderHint(QPainter.RenderHint.Antialiasing)
    color = QColor(PHASE_COLORS[phase])
    p.setBrush(color)
    p.setPen(color.darker(120))
    p.drawEllipse(6, 6, 52, 52)
    p.end()
    return QIcon(pix)


def _fmt_minutes(seconds: int) -> str:
    hours, minutes = divmod(max(0, seconds) // 60, 60)
    return f"{hours}h {minutes:02d}m" if hours else f"{minutes}m"


class SandoroApp(QMainWindow):
    """Main application window."""

    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__()
        self.setWindowTitle("Sandoro")
        self.setMinimumSize(420, 360)

        self._settings: Settings = settings or load_settings()

        # ── collaborators ─────────────────────────────────────────────
        self._tray_icon = QSystemTrayIcon(_make_tray_icon(Phase.WORK), self)
        self._sound_manager = SoundManager(parent=self)
        self._sound_manager.set_enabled(self._settings.sound_enabled)
        self._sound_manager.set_volume(self._settings.sound_volume)
        self._notifier = Notifier(
            self._settings, sounds=self._sound_manager, tray=self._tray_icon,
        )
        self._controller = TimerController(
            self._settings,
            self,
            recorder=SessionRecorder(),
            notifier=self._notifier,
        )

        # ── layout ────────────────────────────────────────────────────
        central = QWidget(self)
        layout = QVBoxLayout(central)
        self._timer_widget = TimerWidget(self._controller, central)
        layout.addWidget(self._timer_widget)

        self._today_label = QLabel(central)
        self._today_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._today_label)
        self.setCentralWidget(central)

        self._build_tray_menu()
        self._tray_icon.show()
        self._setup_shortcuts()

        self._controller.state_changed.connect(self._update_tray_state)
        self._controller.phase_completed.connect(lambda _data: self._refresh_today())
        self._refresh_today()

    # ══════════════════════════════════════════════════════════════════
    #  SYSTEM TRAY
    # ══════════════════════════════════════════════════════════════════

    def _build_tray_menu(self) -> None:
        menu = QMenu(self)

        self._tray_start_action = menu.addAction("Start")
        self._tray_start_action.triggered.connect(self._controller.toggle_pause)

        skip_action = menu.addAction("Skip")
        skip_action.triggered.connect(self._controller.skip)

        menu.addSeparator()

        show_action = menu.addAction("Show Sandoro")
        show_action.triggered.connect(self._show_window)

        quit_action = menu.addAction("Quit")
        quit_action.triggered.connect(self._quit_app)

        self._tray_icon.setContextMenu(menu)

    def _update_tray_state(self, phase: Phase) -> None:
        self._tray_icon.setIcon(_make_tray_icon(phase))
        paused = self._controller.engine.is_paused
        self._tray_start_action.setText("Start" if paused else "Pause")
        self._tray_icon.setToolTip(
            f"{phase.label} {self._controller.engine.formatted_display_time()}"
        )

    def _show_window(self) -> None:
        self.show()
        self.raise_()
        self.activateWindow()

    def _quit_app(self) -> None:
        self._tray_icon.hide()
        QApplication.instance().quit()

    def _refresh_today(self) -> None:
        stats = self._controller.today_stats()
        self._today_label.setText(
            f"Today: {stats.sessions_completed} sessions · "
            f"{_fmt_minutes(stats.work_seconds)} focused"
        )

    # ══════════════════════════════════════════════════════════════════
    #  SETTINGS
    # ══════════════════════════════════════════════════════════════════

    def _open_settings(self) -> None:
        dlg = SettingsDialog(
            dataclasses.replace(self._settings),
            self,
            sound_preview_callback=lambda: self._sound_manager.play("click"),
        )
        dlg.settings_changed.connect(self._apply_settings)
        dlg.exec()

    def _apply_settings(self, settings: Settings) -> None:
        self._settings = settings
        self._sound_manager.set_enabled(settings.sound_enabled)
        self._sound_manager.set_volume(settings.sound_volume)
        self._controller.apply_settings(settings)

    # ══════════════════════════════════════════════════════════════════
    #  KEYBOARD SHORTCUTS
    # ══════════════════════════════════════════════════════════════════

    def _setup_shortcuts(self) -> None:
        """Letter shortcuts; Space is handled in keyPressEvent."""
        bindings = (
            ("Reset", "R", self._controller.reset),
            ("Full Reset", "Shift+R", self._controller.full_reset),
            ("Skip", "S", self._controller.skip),
            ("End Work", "E", self._controller.end_work),
            ("Snooze", "Z", self._controller.snooze),
            ("Toggle Flowtime", "F", self._toggle_flowtime),
            ("Settings", "Ctrl+,", self._open_settings),
            ("Quit", "Q", self._quit_app),
        )
        for name, keys, slot in bindings:
            action = QAction(name, self)
            action.setShortcut(QKeySequence(keys))
            action.triggered.connect(slot)
            self.addAction(action)

    def _toggle_flowtime(self) -> None:
        self._controller.set_flowtime(not self._controller.engine.is_flowtime)

    def keyPressEvent(self, event) -> None:  # type: ignore[override]
        """Space starts/pauses the timer from anywhere in the window."""
        if event.key() == Qt.Key.Key_Space and not event.modifiers():
            self._controller.toggle_pause()
            event.accept()
            return
        super().keyPressEvent(event)
