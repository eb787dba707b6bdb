"""Database package."""

from .db import configure_engine, get_session, init_db
from .models import Session

__all__ = ["configure_engine", "get_session", "init_db", "Session"]
