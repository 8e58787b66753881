from typing import Optional


class TaskError(Exception):
    """Base class for failures raised by the task handlers."""

    status_code = 500

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ValidationError(TaskError):
    """Raised when client input fails a required-field or format check."""

    status_code = 400


class NotFoundError(TaskError):
    """Raised when no task matches the requested id."""

    status_code = 404


class StorageError(TaskError):
    """Raised when the storage backend fails for any reason."""

    status_code = 500
