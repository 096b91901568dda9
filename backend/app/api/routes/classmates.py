from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, is_course_rep
from app.models.user import User
from app.schemas.user import ClassmateListOut, ClassmateOut, CourseRepOut

router = APIRouter()


def _classmate_out(user: User) -> ClassmateOut:
    return ClassmateOut(id=user.id, name=user.name, email=user.email, is_course_rep=is_course_rep(user))


def _group_members(db: Session, class_group_id: str, search: str | None = None) -> list[User]:
    query = select(User).where(User.class_group_id == class_group_id, User.is_active.is_(True))
    if search and len(search.strip()) >= 2:
        query = query.where(User.name.ilike(f"%{search.strip()}%"))
    return list(db.execute(query.order_by(User.name.asc(), User.id.asc())).scalars())


@router.get("/classmates", response_model=ClassmateListOut)
def list_classmates(
    search: str | None = Query(default=None, max_length=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ClassmateListOut:
    if not current_user.class_group_id:
        return ClassmateListOut(classmates=[], count=0)
    members = [_classmate_out(user) for user in _group_members(db, current_user.class_group_id, search)]
    # Course reps first, then by name.
    members.sort(key=lambda member: not member.is_course_rep)
    course_rep = next((member for member in members if member.is_course_rep), None)
    return ClassmateListOut(classmates=members, count=len(members), course_rep=course_rep)


@router.get("/classmates/course-rep", response_model=CourseRepOut)
def get_course_rep(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CourseRepOut:
    if not current_user.class_group_id:
        return CourseRepOut()
    for user in _group_members(db, current_user.class_group_id):
        if is_course_rep(user):
            return CourseRepOut(course_rep=_classmate_out(user))
    return CourseRepOut()
