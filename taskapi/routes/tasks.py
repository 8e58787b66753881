"""Task CRUD API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Form, Response

from taskapi.app.deps import get_task_gateway
from taskapi.app.schemas import ErrorResponse, TaskDetail
from taskapi.app.services import tasks as task_service
from taskapi.ports.task_gateway import ITaskGateway

router = APIRouter(prefix="/tasks")

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post("", status_code=201, response_model=str, responses=_ERRORS)
def create_task(
    response: Response,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    due_date: Optional[str] = Form(None, alias="dueDate"),
    duedate: Optional[str] = Form(None),
    gateway: ITaskGateway = Depends(get_task_gateway),
):
    """Create a task. The body only reports success; the id is in ``Location``."""

    task_id = task_service.create_task(
        gateway,
        title=title,
        description=description,
        due_date=due_date or duedate,
    )
    response.headers["Location"] = f"{router.prefix}/{task_id}"
    return "successful"


@router.get("", response_model=list[TaskDetail], responses=_ERRORS)
def list_tasks(gateway: ITaskGateway = Depends(get_task_gateway)):
    return task_service.list_tasks(gateway)


@router.get("/{task_id}", response_model=TaskDetail, responses=_ERRORS)
def get_task(task_id: str, gateway: ITaskGateway = Depends(get_task_gateway)):
    """Retrieve a single task by id."""

    return task_service.get_task(gateway, task_id)


@router.put("/{task_id}", response_model=str, responses=_ERRORS)
def update_task(
    task_id: str,
    completed: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    due_date: Optional[str] = Form(None, alias="dueDate"),
    duedate: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    gateway: ITaskGateway = Depends(get_task_gateway),
):
    """Update a task; omitted or empty fields keep their stored values."""

    task_service.update_task(
        gateway,
        task_id,
        completed=completed,
        description=description,
        due_date=due_date or duedate,
        title=title,
    )
    return "update successful"


@router.delete("/{task_id}", response_model=str, responses=_ERRORS)
def delete_task(task_id: str, gateway: ITaskGateway = Depends(get_task_gateway)):
    task_service.delete_task(gateway, task_id)
    return "delete successful"


__all__ = ["router"]
