from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.api.deps import EDITOR_ROLES, get_current_user, get_db, get_now, is_course_rep, require_class_group, require_roles
from app.models.assignment import Assignment, AssignmentView
from app.models.course import Course
from app.models.notification import NotificationType
from app.models.user import User
from app.schemas.assignment import (
    AssignmentCreate,
    AssignmentGroupOut,
    AssignmentListOut,
    AssignmentOut,
    AssignmentOverviewOut,
    AssignmentUpdate,
    SubmissionUpdate,
    UnreadSummaryOut,
    ViewMarkOut,
)
from app.services import activity, view_tracker
from app.services.assignment_views import load_view_log, mark_assignment_viewed
from app.services.assignments import get_group_assignment, load_group_assignments, to_tracked_record, to_utc
from app.services.audit import log_activity
from app.services.notifications import notify_class_group

router = APIRouter()


def _assignment_out(assignment: Assignment, course: Course | None, *, is_viewed: bool = False) -> AssignmentOut:
    payload = AssignmentOut.model_validate(assignment)
    return payload.model_copy(
        update={
            "course_code": course.code if course is not None else None,
            "course_title": course.title if course is not None else None,
            "is_viewed": is_viewed,
        }
    )


def _group_by_course(items: list[AssignmentOut]) -> list[AssignmentGroupOut]:
    groups: dict[str, AssignmentGroupOut] = {}
    for item in items:
        code = item.course_code or "Unknown"
        group = groups.get(code)
        if group is None:
            group = AssignmentGroupOut(
                course_code=code,
                course_title=item.course_title or "",
                assignment_count=0,
                submitted_count=0,
                items=[],
            )
            groups[code] = group
        group.items.append(item)
        group.assignment_count += 1
        if item.submitted:
            group.submitted_count += 1
    return list(groups.values())


def _get_assignment_or_404(db: Session, user: User, assignment_id: str) -> Assignment:
    assignment = get_group_assignment(db, user, assignment_id)
    if assignment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    return assignment


def _get_course_or_404(db: Session, course_id: str) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course


@router.get("/assignments", response_model=AssignmentListOut)
def list_assignments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> AssignmentListOut:
    rows = load_group_assignments(db, current_user)
    view_log = load_view_log(db, current_user.id)
    items = [
        _assignment_out(assignment, course, is_viewed=view_log.has_viewed(current_user.id, assignment.id))
        for assignment, course in rows
    ]
    records = [to_tracked_record(assignment, course) for assignment, course in rows]
    stats = view_tracker.stats(records, now)
    return AssignmentListOut(
        assignments=items,
        grouped=_group_by_course(items),
        stats=asdict(stats),
        is_course_rep=is_course_rep(current_user),
    )


@router.get("/assignments/stats", response_model=AssignmentOverviewOut)
def assignment_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> AssignmentOverviewOut:
    records = [to_tracked_record(assignment, course) for assignment, course in load_group_assignments(db, current_user)]
    return AssignmentOverviewOut.model_validate(activity.assignment_overview(records, now))


@router.get("/assignments/unviewed", response_model=UnreadSummaryOut)
def unviewed_assignments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UnreadSummaryOut:
    records = [to_tracked_record(assignment, course) for assignment, course in load_group_assignments(db, current_user)]
    view_log = load_view_log(db, current_user.id)
    return UnreadSummaryOut.model_validate(activity.unread_summary(current_user.id, records, view_log))


@router.get("/assignments/{assignment_id}", response_model=AssignmentOut)
def get_assignment(
    assignment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    assignment = _get_assignment_or_404(db, current_user, assignment_id)
    course = db.get(Course, assignment.course_id)
    viewed = load_view_log(db, current_user.id).has_viewed(current_user.id, assignment.id)
    return _assignment_out(assignment, course, is_viewed=viewed)


@router.post("/assignments", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
def create_assignment(
    payload: AssignmentCreate,
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    class_group_id = require_class_group(current_user)
    if not current_user.current_semester_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please set your current semester before creating assignments",
        )
    course = _get_course_or_404(db, payload.course_id)

    assignment = Assignment(
        class_group_id=class_group_id,
        semester_id=current_user.current_semester_id,
        course_id=course.id,
        title=payload.title,
        description=payload.description,
        due_at=to_utc(payload.due_at),
        created_by_id=current_user.id,
    )
    db.add(assignment)
    db.flush()

    notify_class_group(
        db,
        class_group_id=class_group_id,
        title=f"New assignment: {course.code}",
        message=payload.title,
        notification_type=NotificationType.assignment_added,
        exclude_user_id=current_user.id,
        data={"assignment_id": assignment.id, "course_code": course.code},
    )
    log_activity(
        db,
        user=current_user,
        action="assignment.create",
        entity_type="assignment",
        entity_id=assignment.id,
        details={"course_code": course.code},
    )
    db.commit()
    db.refresh(assignment)
    return _assignment_out(assignment, course)


@router.patch("/assignments/{assignment_id}", response_model=AssignmentOut)
def update_assignment(
    assignment_id: str,
    payload: AssignmentUpdate,
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    assignment = _get_assignment_or_404(db, current_user, assignment_id)
    changes = payload.model_dump(exclude_unset=True)
    if "course_id" in changes and changes["course_id"] is not None:
        _get_course_or_404(db, changes["course_id"])
    for field, value in changes.items():
        if field in {"title", "course_id", "description"} and value is None:
            continue
        setattr(assignment, field, to_utc(value) if field == "due_at" else value)

    course = db.get(Course, assignment.course_id)
    if changes:
        notify_class_group(
            db,
            class_group_id=assignment.class_group_id,
            title=f"Assignment updated: {course.code if course else 'Unknown'}",
            message=assignment.title,
            notification_type=NotificationType.assignment_updated,
            exclude_user_id=current_user.id,
            data={"assignment_id": assignment.id, "fields": sorted(changes)},
        )
        log_activity(
            db,
            user=current_user,
            action="assignment.update",
            entity_type="assignment",
            entity_id=assignment.id,
            details={"fields": sorted(changes)},
        )
    db.commit()
    db.refresh(assignment)
    return _assignment_out(assignment, course)


@router.delete("/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(
    assignment_id: str,
    current_user: User = Depends(require_roles(*EDITOR_ROLES)),
    db: Session = Depends(get_db),
) -> Response:
    assignment = _get_assignment_or_404(db, current_user, assignment_id)
    db.execute(delete(AssignmentView).where(AssignmentView.assignment_id == assignment.id))
    db.delete(assignment)
    log_activity(
        db,
        user=current_user,
        action="assignment.delete",
        entity_type="assignment",
        entity_id=assignment_id,
    )
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/assignments/{assignment_id}/submit", response_model=AssignmentOut)
def toggle_submission(
    assignment_id: str,
    payload: SubmissionUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> AssignmentOut:
    assignment = _get_assignment_or_404(db, current_user, assignment_id)
    assignment.submitted = payload.submitted
    assignment.submitted_at = to_utc(now) if payload.submitted else None
    log_activity(
        db,
        user=current_user,
        action="assignment.submit" if payload.submitted else "assignment.unsubmit",
        entity_type="assignment",
        entity_id=assignment.id,
    )
    db.commit()
    db.refresh(assignment)
    course = db.get(Course, assignment.course_id)
    viewed = load_view_log(db, current_user.id).has_viewed(current_user.id, assignment.id)
    return _assignment_out(assignment, course, is_viewed=viewed)


@router.post("/assignments/{assignment_id}/view", response_model=ViewMarkOut)
def mark_assignment_view(
    assignment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ViewMarkOut:
    assignment = _get_assignment_or_404(db, current_user, assignment_id)
    view = mark_assignment_viewed(db, user_id=current_user.id, assignment_id=assignment.id, now=now)
    viewed_at = view.viewed_at
    log_activity(
        db,
        user=current_user,
        action="assignment.view",
        entity_type="assignment",
        entity_id=assignment.id,
    )
    db.commit()
    return ViewMarkOut(viewed=True, viewed_at=viewed_at)
