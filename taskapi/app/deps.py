"""Dependency providers for the task storage gateway."""

from __future__ import annotations

import logging
from typing import Iterator

from fastapi import Request

from taskapi.app.config import Settings
from taskapi.ports.task_gateway import ITaskGateway, ITaskStore

logger = logging.getLogger(__name__)


def build_task_store(settings: Settings) -> ITaskStore:
    """Return the task store selected by ``TASK_BACKEND``."""
    backend = (settings.task_backend or "").lower()
    backend_label = backend or "sql"
    logger.info("TaskStore backend=%s", backend_label, extra={"backend": backend_label})
    if backend in {"s3", "r2"}:
        from taskapi.adapters.s3_client import get_bucket_name, get_s3_client
        from taskapi.adapters.task_gateway_s3 import S3TaskStore

        return S3TaskStore(
            get_s3_client(settings),
            get_bucket_name(settings),
            settings.task_collection,
        )
    if backend == "file":
        from taskapi.adapters.task_gateway_file import FileTaskStore

        return FileTaskStore(settings.data_root, settings.task_collection)
    if backend not in {"", "sql"}:
        raise RuntimeError(f"Unknown TASK_BACKEND: {settings.task_backend}")

    from taskapi.adapters.task_gateway_sql import SqlTaskStore
    from taskapi.app.db import build_engine

    engine = build_engine(
        settings.sqlalchemy_url(),
        pool_size=settings.database_pool_size,
        timeout_sec=settings.database_timeout_sec,
    )
    return SqlTaskStore(engine).open()


def get_task_store(request: Request) -> ITaskStore:
    store = getattr(request.app.state, "task_store", None)
    if store is None:
        raise RuntimeError("Task store is not configured")
    return store


def get_task_gateway(request: Request) -> Iterator[ITaskGateway]:
    """Check out a gateway for the current request and release it afterwards."""
    store = get_task_store(request)
    with store.checkout() as gateway:
        yield gateway
