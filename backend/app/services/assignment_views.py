from __future__ import annotations

from datetime import datetime
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.assignment import AssignmentView
from app.services.assignments import normalize_dt, to_utc
from app.services.view_tracker import ViewLog

logger = logging.getLogger(__name__)


def load_view_log(db: Session, user_id: str) -> ViewLog:
    rows = db.execute(
        select(AssignmentView.assignment_id, AssignmentView.viewed_at).where(AssignmentView.user_id == user_id)
    ).all()
    return ViewLog.for_member(user_id, ((row.assignment_id, normalize_dt(row.viewed_at)) for row in rows))


def _find_view(db: Session, user_id: str, assignment_id: str) -> AssignmentView | None:
    return db.execute(
        select(AssignmentView).where(
            AssignmentView.user_id == user_id,
            AssignmentView.assignment_id == assignment_id,
        )
    ).scalar_one_or_none()


def mark_assignment_viewed(db: Session, *, user_id: str, assignment_id: str, now: datetime) -> AssignmentView:
    """Upsert the view mark for ``(user_id, assignment_id)``.

    Must be the first write in the session: a lost insert race rolls the
    session back before retrying as an update.
    """
    now = to_utc(now)
    existing = _find_view(db, user_id, assignment_id)
    if existing is None:
        record = AssignmentView(user_id=user_id, assignment_id=assignment_id, viewed_at=now)
        db.add(record)
        try:
            db.flush()
            return record
        except IntegrityError:
            db.rollback()
            logger.debug("View mark for %s/%s inserted concurrently, updating", user_id, assignment_id)
            existing = _find_view(db, user_id, assignment_id)
            if existing is None:
                raise

    existing.viewed_at = now
    db.flush()
    return existing
