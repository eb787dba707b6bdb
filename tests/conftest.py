"""Shared pytest fixtures for Sandoro tests."""

import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

from sandoro.database.db import configure_engine, init_db
from sandoro.recorder import SessionRecorder
from sandoro.settings import Settings
from sandoro.timer.engine import TimerEngine

from helpers import FakeClock, FakeNotifier


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture(autouse=True)
def settings_path(tmp_path, monkeypatch):
    """Keep settings writes out of the real home directory."""
    path = tmp_path / "settings.json"
    monkeypatch.setattr("sandoro.settings.SETTINGS_PATH", path)
    return path


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    """Classic 25/5/15 engine with a four-session cycle."""
    return TimerEngine(25, 5, 15, 4, clock=clock)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def controller(qapp, settings, clock, notifier):
    """Controller with real history (in-memory DB) and a fake notifier."""
    from sandoro.timer.controller import TimerController

    return TimerController(
        settings,
        recorder=SessionRecorder(),
        notifier=notifier,
        clock=clock,
    )
