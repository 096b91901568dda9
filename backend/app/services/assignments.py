from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.assignment import Assignment
from app.models.course import Course
from app.models.user import User
from app.services.view_tracker import TrackedRecord


def normalize_dt(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_utc(value: datetime | None) -> datetime | None:
    """Aware UTC value for storage; naive input is taken as UTC."""
    normalized = normalize_dt(value)
    return normalized.astimezone(timezone.utc) if normalized is not None else None


def load_group_assignments(db: Session, user: User) -> list[tuple[Assignment, Course | None]]:
    """Assignments of the user's class group, scoped to the current semester when one is set."""
    if not user.class_group_id:
        return []
    query = (
        select(Assignment, Course)
        .outerjoin(Course, Course.id == Assignment.course_id)
        .where(Assignment.class_group_id == user.class_group_id)
    )
    if user.current_semester_id:
        query = query.where(Assignment.semester_id == user.current_semester_id)
    query = query.order_by(Assignment.due_at.is_(None), Assignment.due_at.asc(), Assignment.id.asc())
    return [(row[0], row[1]) for row in db.execute(query).all()]


def get_group_assignment(db: Session, user: User, assignment_id: str) -> Assignment | None:
    """Single assignment visible to the user under the same scope as `load_group_assignments`."""
    assignment = db.get(Assignment, assignment_id)
    if assignment is None or not user.class_group_id or assignment.class_group_id != user.class_group_id:
        return None
    if user.current_semester_id and assignment.semester_id != user.current_semester_id:
        return None
    return assignment


def to_tracked_record(assignment: Assignment, course: Course | None = None) -> TrackedRecord:
    return TrackedRecord(
        id=assignment.id,
        group_id=assignment.class_group_id,
        created_at=normalize_dt(assignment.created_at),
        due_at=normalize_dt(assignment.due_at),
        is_submitted=bool(assignment.submitted),
        title=assignment.title,
        subject_code=course.code if course is not None else None,
    )
