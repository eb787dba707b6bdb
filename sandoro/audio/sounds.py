"""Completion cues, synthesised with numpy and played through QSoundEffect.

Each cue is a short run of enveloped sine beeps written to a 16-bit mono
WAV file.  Files are cached under ``~/.sandoro/sounds`` and only
regenerated when missing.

Sound names
-----------
- ``work_complete``        — three rising beeps, time for a break
- ``short_break_complete`` — two soft beeps, back to work
- ``long_break_complete``  — four-note long-short-long phrase, new cycle
- ``click``                — subtle UI tick (volume preview)
"""

from __future__ import annotations

import io
import wave
from pathlib import Path
from typing import Callable, NamedTuple

import numpy as np

from PyQt6.QtCore import QObject, QUrl
from PyQt6.QtMultimedia import QSoundEffect

from ..timer.engine import Phase


# ── paths ────────────────────────────────────────────────────────────────

APP_DATA_DIR = Path.home() / ".sandoro"
SOUNDS_DIR = APP_DATA_DIR / "sounds"

SOUND_NAMES = (
    "work_complete",
    "short_break_complete",
    "long_break_complete",
    "click",
)

PHASE_SOUNDS: dict[Phase, str] = {
    Phase.WORK: "work_complete",
    Phase.SHORT_BREAK: "short_break_complete",
    Phase.LONG_BREAK: "long_break_complete",
}

SAMPLE_RATE = 44100


class Beep(NamedTuple):
    freq: float         # Hz
    duration_s: float
    gap_s: float        # silence after the beep


# ═══════════════════════════════════════════════════════════════════════════
#  SYNTHESIS
# ═══════════════════════════════════════════════════════════════════════════


def _envelope(length: int, attack: int = 80, release: int = 300) -> np.ndarray:
    """Linear fade-in and fade-out around a flat top (sample counts)."""
    env = np.ones(length)
    rise = min(attack, length)
    fall = min(release, length - rise)
    if rise:
        env[:rise] = np.linspace(0.0, 1.0, rise)
    if fall:
        env[length - fall:] = np.linspace(1.0, 0.0, fall)
    return env


def _tone(freq: float, duration_s: float, level: float, **envelope) -> np.ndarray:
    n = int(SAMPLE_RATE * duration_s)
    t = np.arange(n) / SAMPLE_RATE
    return np.sin(2 * np.pi * freq * t) * level * _envelope(n, **envelope)


def _encode_wav(samples: np.ndarray) -> bytes:
    """Float samples in -1..1 → 16-bit PCM mono WAV bytes."""
    pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(pcm.tobytes())
    return buf.getvalue()


def _render(beeps: list[Beep], level: float = 0.5) -> bytes:
    parts: list[np.ndarray] = []
    for beep in beeps:
        parts.append(_tone(beep.freq, beep.duration_s, level))
        parts.append(np.zeros(int(SAMPLE_RATE * beep.gap_s)))
    return _encode_wav(np.concatenate(parts))


# ── cues ──────────────────────────────────────────────────────────────────


def _generate_work_complete() -> bytes:
    """C5 → E5 → G5, rising."""
    return _render([
        Beep(523.25, 0.12, 0.08),
        Beep(659.25, 0.12, 0.08),
        Beep(783.99, 0.18, 0.05),
    ])


def _generate_short_break_complete() -> bytes:
    return _render([Beep(440.0, 0.10, 0.05)] * 2, level=0.4)


def _generate_long_break_complete() -> bytes:
    """G4 → B4 → D5 → G5, long-short-long-long."""
    return _render([
        Beep(392.00, 0.15, 0.15),
        Beep(493.88, 0.10, 0.05),
        Beep(587.33, 0.15, 0.15),
        Beep(783.99, 0.35, 0.05),
    ], level=0.55)


def _generate_click() -> bytes:
    tick = _tone(1200.0, 0.015, 0.2, attack=20, release=600)
    # trailing silence so QSoundEffect doesn't clip the tail
    return _encode_wav(np.concatenate([tick, np.zeros(int(SAMPLE_RATE * 0.03))]))


_GENERATORS: dict[str, Callable[[], bytes]] = {
    "work_complete": _generate_work_complete,
    "short_break_complete": _generate_short_break_complete,
    "long_break_complete": _generate_long_break_complete,
    "click": _generate_click,
}


# ═══════════════════════════════════════════════════════════════════════════
#  SOUND MANAGER
# ═══════════════════════════════════════════════════════════════════════════


class SoundManager(QObject):
    """Owns one ``QSoundEffect`` per cue.

    Usage::

        mgr = SoundManager(parent=self)
        mgr.set_volume(70)
        mgr.play_for_phase(Phase.WORK)
    """

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        sounds_dir: Path | None = None,
    ) -> None:
        super().__init__(parent)
        self._enabled = True
        self._volume = 0.7  # 0.0–1.0
        self._sounds_dir = sounds_dir or SOUNDS_DIR
        self._effects: dict[str, QSoundEffect] = {
            name: self._load(name) for name in SOUND_NAMES
        }

    # ── public API ────────────────────────────────────────────────────

    def set_volume(self, level: int) -> None:
        """Volume as 0-100; applied to every effect."""
        self._volume = max(0, min(level, 100)) / 100.0
        for effect in self._effects.values():
            effect.setVolume(self._volume)

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    def play(self, name: str) -> None:
        """No-op while disabled or for an unknown *name*."""
        effect = self._effects.get(name)
        if self._enabled and effect is not None:
            effect.play()

    def play_for_phase(self, phase: Phase) -> None:
        """Play the cue for *phase* having just finished."""
        self.play(PHASE_SOUNDS[phase])

    @property
    def volume(self) -> int:
        return round(self._volume * 100)

    @property
    def enabled(self) -> bool:
        return self._enabled

    # ── internal ──────────────────────────────────────────────────────

    def _load(self, name: str) -> QSoundEffect:
        path = self._sounds_dir / f"{name}.wav"
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(_GENERATORS[name]())
        effect = QSoundEffect(self)
        effect.setSource(QUrl.fromLocalFile(str(path)))
        effect.setVolume(self._volume)
        return effect
