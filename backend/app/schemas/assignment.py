from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class AssignmentCreate(BaseModel):
    course_id: str = Field(min_length=1, max_length=36)
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    due_at: datetime | None = None

    @field_validator("title")
    @classmethod
    def normalize_title(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Title cannot be empty")
        return trimmed


class AssignmentUpdate(BaseModel):
    course_id: str | None = Field(default=None, min_length=1, max_length=36)
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    due_at: datetime | None = None

    @field_validator("title")
    @classmethod
    def normalize_title(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Title cannot be empty")
        return trimmed


class SubmissionUpdate(BaseModel):
    submitted: bool


class AssignmentOut(BaseModel):
    id: str
    class_group_id: str
    semester_id: str | None
    course_id: str
    course_code: str | None = None
    course_title: str | None = None
    title: str
    description: str
    due_at: datetime | None
    submitted: bool
    submitted_at: datetime | None
    created_at: datetime | None
    is_viewed: bool = False

    model_config = {"from_attributes": True}


class AssignmentGroupOut(BaseModel):
    course_code: str
    course_title: str
    assignment_count: int
    submitted_count: int
    items: list[AssignmentOut]


class AssignmentStatsOut(BaseModel):
    total: int = 0
    submitted: int = 0
    pending: int = 0
    overdue: int = 0


class NextAssignmentOut(BaseModel):
    id: str
    title: str
    course_code: str
    due_at: datetime
    due_label: str
    days_left: int


class AssignmentListOut(BaseModel):
    assignments: list[AssignmentOut]
    grouped: list[AssignmentGroupOut]
    stats: AssignmentStatsOut
    is_course_rep: bool


class AssignmentOverviewOut(BaseModel):
    stats: AssignmentStatsOut
    next_assignment: NextAssignmentOut | None
    upcoming_count: int


class UnreadSummaryOut(BaseModel):
    unviewed_ids: list[str]
    unread_count: int


class ViewMarkOut(BaseModel):
    viewed: bool
    viewed_at: datetime
