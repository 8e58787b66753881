"""Port interface for task persistence (storage gateway boundary)."""

from __future__ import annotations

from typing import Any, ContextManager, Protocol, runtime_checkable

TaskRecord = dict[str, Any]


@runtime_checkable
class ITaskGateway(Protocol):
    """Document-style task storage bound to a single request.

    Every method raises ``StorageError`` when the backend fails. Lookups and
    writes keyed by id raise ``NotFoundError`` when no document matches.
    """

    backend: str

    def insert(self, record: TaskRecord) -> str:
        """Persist a new task and return the id assigned to it."""

    def find_all(self) -> list[TaskRecord]:
        """Return every stored task in backend-native order."""

    def find_by_id(self, task_id: str) -> TaskRecord:
        """Return the task stored under ``task_id``."""

    def update_by_id(self, task_id: str, fields: TaskRecord) -> None:
        """Replace the given fields on the task stored under ``task_id``."""

    def delete_by_id(self, task_id: str) -> None:
        """Remove the task stored under ``task_id``."""

    def is_valid_id(self, value: str) -> bool:
        """Return True when ``value`` has the backend's id format."""


@runtime_checkable
class ITaskStore(Protocol):
    """Process-wide owner of the storage connection (pool)."""

    def checkout(self) -> ContextManager[ITaskGateway]:
        """Lend a gateway for one request; released when the context exits."""

    def close(self) -> None:
        """Release pooled resources at shutdown."""
