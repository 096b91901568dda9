from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.models.user import UserRole


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    class_group_id: str | None
    current_semester_id: str | None
    is_active: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    class_group_id: str | None = Field(default=None, min_length=1, max_length=36)
    current_semester_id: str | None = Field(default=None, min_length=1, max_length=36)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("Name cannot be blank")
        return value


class ClassmateOut(BaseModel):
    id: str
    name: str
    email: str
    is_course_rep: bool


class ClassmateListOut(BaseModel):
    classmates: list[ClassmateOut]
    count: int
    course_rep: ClassmateOut | None = None


class CourseRepOut(BaseModel):
    course_rep: ClassmateOut | None = None
