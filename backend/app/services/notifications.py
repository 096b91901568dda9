from __future__ import annotations

from datetime import datetime, timezone
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.notification import Notification, NotificationPreference, NotificationType
from app.models.user import User

logger = logging.getLogger(__name__)

ASSIGNMENT_TYPES = {NotificationType.assignment_added, NotificationType.assignment_updated}


def get_preferences(db: Session, user_id: str) -> NotificationPreference:
    """Stored preferences, or unsaved all-enabled defaults."""
    preference = db.get(NotificationPreference, user_id)
    if preference is None:
        preference = NotificationPreference(
            user_id=user_id,
            timetable_updates=True,
            assignment_updates=True,
            push_enabled=True,
        )
    return preference


def wants_notification(preference: NotificationPreference | None, notification_type: NotificationType) -> bool:
    if preference is None:
        return True
    if notification_type == NotificationType.timetable_updated:
        return bool(preference.timetable_updates)
    if notification_type in ASSIGNMENT_TYPES:
        return bool(preference.assignment_updates)
    return True


def create_notification(
    db: Session,
    *,
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.system,
    data: dict | None = None,
) -> Notification:
    record = Notification(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type,
        data=data or {},
    )
    db.add(record)
    db.flush()
    return record


def notify_users(
    db: Session,
    *,
    user_ids: list[str] | set[str] | tuple[str, ...],
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.system,
    exclude_user_id: str | None = None,
    data: dict | None = None,
) -> list[Notification]:
    requested_ids = [item for item in dict.fromkeys(user_ids) if item and item != exclude_user_id]
    if not requested_ids:
        return []

    preferences = {
        item.user_id: item
        for item in db.execute(
            select(NotificationPreference).where(NotificationPreference.user_id.in_(requested_ids))
        ).scalars()
    }
    results: list[Notification] = []
    for user_id in requested_ids:
        if not wants_notification(preferences.get(user_id), notification_type):
            logger.debug("User %s opted out of %s notifications", user_id, notification_type.value)
            continue
        results.append(
            create_notification(
                db,
                user_id=user_id,
                title=title,
                message=message,
                notification_type=notification_type,
                data=data,
            )
        )
    return results


def notify_class_group(
    db: Session,
    *,
    class_group_id: str,
    title: str,
    message: str,
    notification_type: NotificationType,
    exclude_user_id: str | None = None,
    data: dict | None = None,
) -> list[Notification]:
    member_ids = list(
        db.execute(
            select(User.id).where(
                User.class_group_id == class_group_id,
                User.is_active.is_(True),
            )
        ).scalars()
    )
    results = notify_users(
        db,
        user_ids=member_ids,
        title=title,
        message=message,
        notification_type=notification_type,
        exclude_user_id=exclude_user_id,
        data=data,
    )
    logger.info(
        "Sent %d %s notification(s) to class group %s",
        len(results),
        notification_type.value,
        class_group_id,
    )
    return results


def mark_read(notification: Notification, now: datetime | None = None) -> None:
    notification.is_read = True
    notification.read_at = now or datetime.now(timezone.utc)
