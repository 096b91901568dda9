from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.activity_log import ActivityLog
from app.models.user import User


def log_activity(
    db: Session,
    *,
    user: User | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
) -> ActivityLog:
    """Queue an audit row on the session; the caller's commit persists it.

    The row is stamped with the acting user's class group so course reps'
    edits can be reviewed per cohort.
    """
    record = ActivityLog(
        user_id=user.id if user is not None else None,
        class_group_id=user.class_group_id if user is not None else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
    )
    db.add(record)
    return record


def recent_activity(
    db: Session,
    *,
    class_group_id: str | None = None,
    action_prefix: str | None = None,
    limit: int = 200,
) -> list[ActivityLog]:
    query = select(ActivityLog).order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
    if class_group_id:
        query = query.where(ActivityLog.class_group_id == class_group_id)
    if action_prefix:
        query = query.where(ActivityLog.action.startswith(action_prefix))
    return list(db.execute(query.limit(limit)).scalars())
