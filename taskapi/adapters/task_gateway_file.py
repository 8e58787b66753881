"""File-backed task gateway: one JSON document per task on disk."""

from __future__ import annotations

import json
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from taskapi.app.core.errors import NotFoundError, StorageError
from taskapi.app.core.ids import is_valid_task_id, new_task_id
from taskapi.ports.task_gateway import ITaskGateway, TaskRecord


def _atomic_write(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    data = json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8")
    with open(tmp_path, "wb") as handle:
        handle.write(data)
        handle.flush()
        os.fsync(handle.fileno())
    os.replace(tmp_path, path)


def _load_json(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


class FileTaskGateway(ITaskGateway):
    """Tasks persisted as JSON files under ``<root>/<collection>/``."""

    backend = "file"

    def __init__(self, root: str | Path, collection: str = "tasks") -> None:
        self._base = Path(root) / collection

    def _task_path(self, task_id: str) -> Path:
        return self._base / f"{task_id.lower()}.json"

    def insert(self, record: TaskRecord) -> str:
        task_id = new_task_id()
        payload = dict(record)
        payload["id"] = task_id
        try:
            _atomic_write(self._task_path(task_id), payload)
        except OSError as exc:
            raise StorageError(f"insert failed: {exc}", cause=exc) from exc
        return task_id

    def find_all(self) -> list[TaskRecord]:
        if not self._base.exists():
            return []
        results: list[TaskRecord] = []
        try:
            for path in sorted(self._base.glob("*.json")):
                results.append(_load_json(path))
        except (OSError, ValueError) as exc:
            raise StorageError(f"find failed: {exc}", cause=exc) from exc
        return results

    def find_by_id(self, task_id: str) -> TaskRecord:
        path = self._task_path(task_id)
        try:
            return _load_json(path)
        except FileNotFoundError as exc:
            raise NotFoundError("not found", cause=exc) from exc
        except (OSError, ValueError) as exc:
            raise StorageError(f"find failed: {exc}", cause=exc) from exc

    def update_by_id(self, task_id: str, fields: TaskRecord) -> None:
        current = self.find_by_id(task_id)
        updated = dict(current)
        updated.update({key: value for key, value in fields.items() if key != "id"})
        try:
            _atomic_write(self._task_path(task_id), updated)
        except OSError as exc:
            raise StorageError(f"update failed: {exc}", cause=exc) from exc

    def delete_by_id(self, task_id: str) -> None:
        try:
            self._task_path(task_id).unlink()
        except FileNotFoundError as exc:
            raise NotFoundError("not found", cause=exc) from exc
        except OSError as exc:
            raise StorageError(f"delete failed: {exc}", cause=exc) from exc

    def is_valid_id(self, value: str) -> bool:
        return is_valid_task_id(value)


class FileTaskStore:
    """Stateless store; every checkout shares one gateway."""

    def __init__(self, root: str | Path, collection: str = "tasks") -> None:
        self._gateway = FileTaskGateway(root, collection)

    @contextmanager
    def checkout(self) -> Iterator[FileTaskGateway]:
        yield self._gateway

    def close(self) -> None:
        return None
