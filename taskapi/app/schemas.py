from pydantic import BaseModel, ConfigDict


class TaskDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    completed: bool = False
    description: str
    duedate: str = ""
    title: str


class ErrorResponse(BaseModel):
    error: str
