from __future__ import annotations

from contextlib import contextmanager
from typing import Any

import pytest
from fastapi.testclient import TestClient

from taskapi.app.core.errors import NotFoundError, StorageError
from taskapi.app.core.ids import is_valid_task_id, new_task_id


class RecordingGateway:
    """In-memory gateway that records every storage call."""

    backend = "memory"

    def __init__(self) -> None:
        self.docs: dict[str, dict[str, Any]] = {}
        self.calls: list[str] = []
        self.fail_with: StorageError | None = None

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_with is not None:
            raise self.fail_with

    def insert(self, record):
        self._record("insert")
        task_id = new_task_id()
        self.docs[task_id] = {**record, "id": task_id}
        return task_id

    def find_all(self):
        self._record("find_all")
        return [dict(doc) for doc in self.docs.values()]

    def find_by_id(self, task_id):
        self._record("find_by_id")
        if task_id not in self.docs:
            raise NotFoundError("not found")
        return dict(self.docs[task_id])

    def update_by_id(self, task_id, fields):
        self._record("update_by_id")
        if task_id not in self.docs:
            raise NotFoundError("not found")
        self.docs[task_id].update(fields)

    def delete_by_id(self, task_id):
        self._record("delete_by_id")
        if self.docs.pop(task_id, None) is None:
            raise NotFoundError("not found")

    def is_valid_id(self, value):
        return is_valid_task_id(value)


class FakeStore:
    def __init__(self) -> None:
        self.gateway = RecordingGateway()
        self.checkouts = 0
        self.releases = 0

    @contextmanager
    def checkout(self):
        self.checkouts += 1
        try:
            yield self.gateway
        finally:
            self.releases += 1

    def close(self) -> None:
        return None


@pytest.fixture()
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def client(fake_store: FakeStore) -> TestClient:
    from taskapi.main import create_app

    return TestClient(create_app(store=fake_store))
