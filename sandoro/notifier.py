"""Phase-completion alerts: a sound cue plus an optional desktop message."""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtWidgets import QSystemTrayIcon

from .audio.sounds import SoundManager
from .settings import Settings
from .timer.engine import Phase

logger = logging.getLogger(__name__)

MESSAGE_TIMEOUT_MS = 5000

MESSAGES: dict[Phase, tuple[str, str]] = {
    Phase.WORK: ("Work Session Complete!", "Time for a break."),
    Phase.SHORT_BREAK: ("Break Over!", "Ready to get back to work?"),
    Phase.LONG_BREAK: (
        "Long Break Over!",
        "Feeling refreshed? Time to start a new cycle!",
    ),
}


class Notifier:
    """Tells the user that *phase* just finished.

    Both outputs are optional: without a sound manager or tray icon the
    matching half is skipped.  Settings are read on every call so edits
    take effect immediately.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        sounds: Optional[SoundManager] = None,
        tray: Optional[QSystemTrayIcon] = None,
    ) -> None:
        self._settings = settings
        self._sounds = sounds
        self._tray = tray

    def set_settings(self, settings: Settings) -> None:
        self._settings = settings

    def notify(self, phase: Phase) -> None:
        if self._sounds is not None and self._settings.sound_enabled:
            self._sounds.set_volume(self._settings.sound_volume)
            self._sounds.play_for_phase(phase)

        if self._tray is not None and self._settings.notifications_enabled:
            title, body = MESSAGES[phase]
            self._tray.showMessage(
                title,
                body,
                QSystemTrayIcon.MessageIcon.Information,
                MESSAGE_TIMEOUT_MS,
            )
        logger.debug("Notified completion of %s", phase.value)
