"""SQLite storage for session history.

The engine is created on first use so importing the package never
touches the disk.  Tests swap in an in-memory database with
:func:`configure_engine`.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session as OrmSession, sessionmaker

from .models import Base

# ── paths ────────────────────────────────────────────────────────────────────

APP_DATA_DIR = Path.home() / ".sandoro"
DB_PATH = APP_DATA_DIR / "sandoro.db"

# ── module state ─────────────────────────────────────────────────────────────

_engine: Engine | None = None
_session_factory: sessionmaker[OrmSession] | None = None


def _connect(url: str) -> Engine:
    return create_engine(url, connect_args={"check_same_thread": False})


def _get_engine() -> Engine:
    global _engine
    if _engine is None:
        DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        _engine = _connect(f"sqlite:///{DB_PATH}")
    return _engine


# ── public API ───────────────────────────────────────────────────────────────


def configure_engine(url: str) -> None:
    """Use *url* instead of ``~/.sandoro/sandoro.db``.

    Any previous engine is disposed, so each call starts from an empty
    ``sqlite:///:memory:`` database.
    """
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = _connect(url)
    _session_factory = None


def init_db() -> None:
    """Create missing tables."""
    Base.metadata.create_all(_get_engine())


@contextmanager
def get_session() -> Iterator[OrmSession]:
    """Yield an ORM session; commit on success, roll back and re-raise on error."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=_get_engine(), expire_on_commit=False)
    session = _session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
