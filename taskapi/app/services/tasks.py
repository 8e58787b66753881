"""Task handlers: input validation, update merging and gateway calls.

Handlers raise ``TaskError`` subclasses; the HTTP layer turns them into
responses. Ids are validated before the gateway is touched.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from taskapi.app.core.errors import ValidationError
from taskapi.app.utils.timing import log_op_timing
from taskapi.ports.task_gateway import ITaskGateway, TaskRecord

logger = logging.getLogger(__name__)

INVALID_ID_MESSAGE = "id is not in a valid format"

_TRUE_LITERALS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_LITERALS = {"0", "f", "F", "FALSE", "false", "False"}


def parse_bool(value: str) -> bool:
    if value in _TRUE_LITERALS:
        return True
    if value in _FALSE_LITERALS:
        return False
    raise ValidationError("completed is not a valid boolean")


def _require_valid_id(gateway: ITaskGateway, task_id: str) -> None:
    if not gateway.is_valid_id(task_id):
        logger.warning("id is not valid", extra={"task": task_id})
        raise ValidationError(INVALID_ID_MESSAGE)


def _pick(supplied: Optional[str], current: str) -> str:
    return supplied if supplied else current


def create_task(
    gateway: ITaskGateway,
    *,
    title: Optional[str],
    description: Optional[str],
    due_date: Optional[str] = None,
) -> str:
    """Validate and insert a new task, returning the id the store assigned."""
    if not title:
        logger.warning("title missing", extra={"op": "create"})
        raise ValidationError("title missing")
    if not description:
        logger.warning("description missing", extra={"op": "create"})
        raise ValidationError("description missing")

    start = time.perf_counter()
    task_id = gateway.insert(
        {
            "completed": False,
            "description": description,
            "duedate": due_date or "",
            "title": title,
        }
    )
    log_op_timing(logger, op="create", start_time=start, task_id=task_id, backend=gateway.backend)
    return task_id


def list_tasks(gateway: ITaskGateway) -> list[TaskRecord]:
    start = time.perf_counter()
    tasks = gateway.find_all()
    log_op_timing(logger, op="list", start_time=start, backend=gateway.backend)
    return tasks


def get_task(gateway: ITaskGateway, task_id: str) -> TaskRecord:
    _require_valid_id(gateway, task_id)
    start = time.perf_counter()
    task = gateway.find_by_id(task_id)
    log_op_timing(logger, op="get", start_time=start, task_id=task_id, backend=gateway.backend)
    return task


def merge_update(
    current: TaskRecord,
    *,
    completed: Optional[str] = None,
    description: Optional[str] = None,
    due_date: Optional[str] = None,
    title: Optional[str] = None,
) -> TaskRecord:
    """Build the replacement fields; empty or missing inputs keep the stored value."""
    if completed:
        completed_value = parse_bool(completed)
    else:
        completed_value = bool(current.get("completed", False))
    return {
        "completed": completed_value,
        "description": _pick(description, current.get("description", "")),
        "duedate": _pick(due_date, current.get("duedate", "")),
        "title": _pick(title, current.get("title", "")),
    }


def update_task(
    gateway: ITaskGateway,
    task_id: str,
    *,
    completed: Optional[str] = None,
    description: Optional[str] = None,
    due_date: Optional[str] = None,
    title: Optional[str] = None,
) -> None:
    _require_valid_id(gateway, task_id)
    start = time.perf_counter()
    current = gateway.find_by_id(task_id)
    fields = merge_update(
        current,
        completed=completed,
        description=description,
        due_date=due_date,
        title=title,
    )
    gateway.update_by_id(task_id, fields)
    log_op_timing(logger, op="update", start_time=start, task_id=task_id, backend=gateway.backend)


def delete_task(gateway: ITaskGateway, task_id: str) -> None:
    _require_valid_id(gateway, task_id)
    start = time.perf_counter()
    gateway.delete_by_id(task_id)
    log_op_timing(logger, op="delete", start_time=start, task_id=task_id, backend=gateway.backend)
