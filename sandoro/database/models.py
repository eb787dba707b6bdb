"""SQLAlchemy ORM models for Sandoro."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class Session(Base):
    """One timed interval (work or break), finished or abandoned."""

    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    started_at = Column(DateTime, nullable=False, default=datetime.now, index=True)
    ended_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Integer, nullable=False, default=0)
    session_type = Column(String(20), nullable=False, default="work", index=True)  # work | short_break | long_break
    completed = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return (
            f"<Session id={self.id} type={self.session_type} "
            f"completed={self.completed}>"
        )
