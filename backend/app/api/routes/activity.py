from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.models.user import User, UserRole
from app.schemas.activity import ActivityLogOut
from app.services.audit import recent_activity

router = APIRouter()


@router.get("/activity/logs", response_model=list[ActivityLogOut])
def list_activity_logs(
    class_group_id: str | None = Query(default=None),
    action: str | None = Query(default=None, max_length=100, description="Action prefix, e.g. `assignment.`"),
    limit: int = Query(default=200, ge=1, le=500),
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> list[ActivityLogOut]:
    return recent_activity(db, class_group_id=class_group_id, action_prefix=action, limit=limit)
