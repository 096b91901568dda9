from pydantic import BaseModel


class CourseOut(BaseModel):
    id: str
    code: str
    title: str

    model_config = {"from_attributes": True}
