from __future__ import annotations

import time


def log_op_timing(
    logger,
    *,
    op: str,
    start_time: float,
    task_id: str | None = None,
    backend: str | None = None,
) -> None:
    elapsed_ms = int((time.perf_counter() - start_time) * 1000)
    logger.info(
        "op_timing",
        extra={
            "task": task_id or "-",
            "op": op,
            "backend": backend or "-",
            "elapsed_ms": elapsed_ms,
        },
    )
