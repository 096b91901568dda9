from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.assignment import Assignment, AssignmentView  # noqa: F401
from app.models.class_group import ClassGroup, Semester  # noqa: F401
from app.models.course import Course  # noqa: F401
from app.models.notification import Notification, NotificationPreference, NotificationType  # noqa: F401
from app.models.timetable import ClassOverride, Timetable, TimetableEntry  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
