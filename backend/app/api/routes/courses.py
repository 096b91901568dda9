from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.models.course import Course
from app.models.user import User
from app.schemas.course import CourseOut

router = APIRouter()

SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 20


@router.get("/courses", response_model=list[CourseOut])
def list_courses(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[CourseOut]:
    return list(db.execute(select(Course).order_by(Course.code.asc())).scalars())


@router.get("/courses/search", response_model=list[CourseOut])
def search_courses(
    q: str = Query(default="", max_length=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[CourseOut]:
    term = q.strip()
    if len(term) < SEARCH_MIN_LENGTH:
        return []
    pattern = f"%{term}%"
    query = (
        select(Course)
        .where(or_(Course.code.ilike(pattern), Course.title.ilike(pattern)))
        .order_by(Course.code.asc())
        .limit(SEARCH_LIMIT)
    )
    return list(db.execute(query).scalars())
