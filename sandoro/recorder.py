"""Session history: one row per timed interval.

The controller opens a row when an interval starts running and closes it
when the interval ends, naturally or by skip.  Rows that are never
finished (reset, app quit) stay ``completed=False`` with no end time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time

from sqlalchemy import func

from .database.db import get_session
from .database.models import Session as SessionRow
from .timer.engine import Phase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TodayStats:
    work_seconds: int = 0
    sessions_completed: int = 0


class SessionRecorder:
    """Persists interval start/finish events to the sessions table."""

    def start(self, phase: Phase) -> int:
        with get_session() as db:
            row = SessionRow(
                started_at=datetime.now(),
                session_type=phase.value,
                completed=False,
            )
            db.add(row)
            db.flush()
            logger.debug("Session %s started: %s", row.id, phase.value)
            return row.id

    def finish(
        self,
        session_id: int,
        *,
        completed: bool,
        duration_seconds: int,
    ) -> None:
        with get_session() as db:
            row = db.get(SessionRow, session_id)
            if row is None:
                logger.warning("Session %s vanished before it finished", session_id)
                return
            row.ended_at = datetime.now()
            row.duration_seconds = max(0, int(duration_seconds))
            row.completed = completed
        logger.debug(
            "Session %s finished: completed=%s duration=%ss",
            session_id,
            completed,
            duration_seconds,
        )

    def today_stats(self) -> TodayStats:
        """Completed work totals for rows started today."""
        midnight = datetime.combine(datetime.now().date(), time.min)
        with get_session() as db:
            seconds, count = (
                db.query(
                    func.coalesce(func.sum(SessionRow.duration_seconds), 0),
                    func.count(SessionRow.id),
                )
                .filter(
                    SessionRow.session_type == Phase.WORK.value,
                    SessionRow.completed.is_(True),
                    SessionRow.started_at >= midnight,
                )
                .one()
            )
        return TodayStats(work_seconds=int(seconds), sessions_completed=int(count))
