from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, get_now
from app.models.notification import Notification, NotificationType
from app.models.user import User
from app.schemas.notification import (
    NotificationOut,
    NotificationPreferenceOut,
    NotificationPreferenceUpdate,
    UnreadCountOut,
)
from app.services.audit import log_activity
from app.services.notifications import get_preferences, mark_read

router = APIRouter()


@router.get("/notifications", response_model=list[NotificationOut])
def list_notifications(
    notification_type: NotificationType | None = Query(default=None),
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[NotificationOut]:
    query = (
        select(Notification)
        .where(Notification.user_id == current_user.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    if notification_type:
        query = query.where(Notification.notification_type == notification_type)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    query = query.offset(offset).limit(limit)
    return list(db.execute(query).scalars())


@router.get("/notifications/unread-count", response_model=UnreadCountOut)
def unread_notification_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UnreadCountOut:
    count = db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == current_user.id,
            Notification.is_read.is_(False),
        )
    ).scalar_one()
    return UnreadCountOut(count=count)


@router.get("/notifications/preferences", response_model=NotificationPreferenceOut)
def read_preferences(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> NotificationPreferenceOut:
    return get_preferences(db, current_user.id)


@router.put("/notifications/preferences", response_model=NotificationPreferenceOut)
def update_preferences(
    payload: NotificationPreferenceUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> NotificationPreferenceOut:
    preference = get_preferences(db, current_user.id)
    for field, value in payload.model_dump(exclude_none=True).items():
        setattr(preference, field, value)
    db.add(preference)
    db.commit()
    db.refresh(preference)
    return preference


@router.post("/notifications/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> NotificationOut:
    notification = db.get(Notification, notification_id)
    if notification is None or notification.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    if not notification.is_read:
        mark_read(notification, now)
        log_activity(
            db,
            user=current_user,
            action="notification.read",
            entity_type="notification",
            entity_id=notification_id,
        )
    db.commit()
    db.refresh(notification)
    return notification


@router.post("/notifications/read-all")
def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> dict[str, int]:
    notifications = list(
        db.execute(
            select(Notification).where(
                Notification.user_id == current_user.id,
                Notification.is_read.is_(False),
            )
        ).scalars()
    )
    for notification in notifications:
        mark_read(notification, now)

    if notifications:
        log_activity(
            db,
            user=current_user,
            action="notification.read_all",
            entity_type="notification",
            details={"count": len(notifications)},
        )
    db.commit()
    return {"updated": len(notifications)}
