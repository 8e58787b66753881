"""SQLAlchemy-backed task gateway; one pooled session per request."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from taskapi.app.core.errors import NotFoundError, StorageError
from taskapi.app.core.ids import is_valid_task_id, new_task_id
from taskapi.app.db import Base, build_session_factory
from taskapi.app.models import Task
from taskapi.ports.task_gateway import ITaskGateway, TaskRecord

logger = logging.getLogger(__name__)

_FIELDS = ("completed", "description", "duedate", "title")


def _to_record(row: Task) -> TaskRecord:
    return {
        "id": row.id,
        "completed": bool(row.completed),
        "description": row.description,
        "duedate": row.duedate or "",
        "title": row.title,
    }


class SqlTaskGateway(ITaskGateway):
    """Task gateway bound to one SQLAlchemy session."""

    backend = "sql"

    def __init__(self, session: Session) -> None:
        self.session = session

    def insert(self, record: TaskRecord) -> str:
        task_id = new_task_id()
        row = Task(id=task_id, **{key: record.get(key) for key in _FIELDS})
        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"insert failed: {exc}", cause=exc) from exc
        return task_id

    def find_all(self) -> list[TaskRecord]:
        try:
            rows = self.session.query(Task).all()
        except SQLAlchemyError as exc:
            raise StorageError(f"find failed: {exc}", cause=exc) from exc
        return [_to_record(row) for row in rows]

    def find_by_id(self, task_id: str) -> TaskRecord:
        return _to_record(self._get_row(task_id))

    def update_by_id(self, task_id: str, fields: TaskRecord) -> None:
        row = self._get_row(task_id)
        for key in _FIELDS:
            if key in fields:
                setattr(row, key, fields[key])
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"update failed: {exc}", cause=exc) from exc

    def delete_by_id(self, task_id: str) -> None:
        try:
            deleted = self.session.query(Task).filter(Task.id == task_id.lower()).delete()
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"delete failed: {exc}", cause=exc) from exc
        if not deleted:
            raise NotFoundError("not found")

    def is_valid_id(self, value: str) -> bool:
        return is_valid_task_id(value)

    def _get_row(self, task_id: str) -> Task:
        try:
            row = self.session.query(Task).filter(Task.id == task_id.lower()).first()
        except SQLAlchemyError as exc:
            raise StorageError(f"find failed: {exc}", cause=exc) from exc
        if row is None:
            raise NotFoundError("not found")
        return row


class SqlTaskStore:
    """Owns the engine (and its connection pool) for the process lifetime."""

    def __init__(self, engine: Engine, session_factory: sessionmaker | None = None) -> None:
        self.engine = engine
        self._session_factory = session_factory or build_session_factory(engine)

    def open(self) -> "SqlTaskStore":
        # Safe no-op if the table already exists
        Base.metadata.create_all(bind=self.engine)
        return self

    @contextmanager
    def checkout(self) -> Iterator[SqlTaskGateway]:
        session: Session = self._session_factory()
        try:
            yield SqlTaskGateway(session)
        finally:
            session.close()

    def close(self) -> None:
        logger.info("Disposing SQL engine", extra={"backend": "sql"})
        self.engine.dispose()
