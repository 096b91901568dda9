from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.models.class_group import ClassGroup, Semester
from app.models.user import User
from app.schemas.user import ProfileUpdate, UserOut
from app.services.audit import log_activity

router = APIRouter()


@router.get("/profile", response_model=UserOut)
def read_profile(current_user: User = Depends(get_current_user)) -> UserOut:
    return current_user


@router.put("/profile", response_model=UserOut)
def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserOut:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "class_group_id" in changes and db.get(ClassGroup, changes["class_group_id"]) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class group not found")
    if "current_semester_id" in changes and db.get(Semester, changes["current_semester_id"]) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Semester not found")

    for field, value in changes.items():
        setattr(current_user, field, value)
    if changes:
        log_activity(
            db,
            user=current_user,
            action="profile.update",
            entity_type="user",
            entity_id=current_user.id,
            details={"fields": sorted(changes)},
        )
    db.commit()
    db.refresh(current_user)
    return current_user
