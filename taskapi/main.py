import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskapi.app.config import Settings, get_settings
from taskapi.app.core.errors import TaskError
from taskapi.app.core.logging_config import configure_logging
from taskapi.app.deps import build_task_store
from taskapi.ports.task_gateway import ITaskStore
from taskapi.routes import tasks

logger = logging.getLogger(__name__)


async def task_error_handler(request: Request, exc: TaskError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc.cause or exc,
        )
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def create_app(
    store: Optional[ITaskStore] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the API. Without ``store`` one is built from settings on startup."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Task API",
        version="1.0.0",
        docs_url="/docs",
        redoc_url=None,
    )
    app.state.task_store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(TaskError, task_error_handler)

    @app.on_event("startup")
    def on_startup() -> None:
        if app.state.task_store is None:
            app.state.task_store = build_task_store(settings)
            app.state.owns_task_store = True

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        if getattr(app.state, "owns_task_store", False):
            app.state.task_store.close()
            app.state.task_store = None
            app.state.owns_task_store = False

    app.include_router(tasks.router, tags=["tasks"])

    @app.get("/health")
    async def health() -> str:
        """Liveness probe; never touches storage."""
        return "im alive"

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
    )
