from datetime import datetime

from pydantic import BaseModel, Field


class ActivityLogOut(BaseModel):
    id: str
    action: str
    user_id: str | None
    class_group_id: str | None
    entity_type: str | None
    entity_id: str | None
    details: dict = Field(default_factory=dict)
    created_at: datetime

    model_config = {"from_attributes": True}
