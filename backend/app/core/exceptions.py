from collections.abc import Iterator
from contextlib import contextmanager
import logging

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str, status_code: int = 500, details: dict = None, code: str | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationFailedError(AppError):
    """Raised when a request is malformed or internally inconsistent."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""

    code = "NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: str | None = None, message: str | None = None):
        if message is None:
            if resource_id:
                message = f"{resource_type} with id {resource_id} not found"
            else:
                message = f"{resource_type} not found"
        details = {"resource": resource_type}
        if resource_id:
            details["id"] = resource_id
        super().__init__(message, status_code=404, details=details)


class PreconditionFailedError(AppError):
    """Raised when the data needed to run an operation is not in place."""

    code = "PRECONDITION_FAILED"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=412, details=details)


class ConflictError(AppError):
    """Raised when an operation collides with existing or unresolved state."""

    code = "CONFLICT"

    def __init__(self, message: str, conflicts: list | None = None, details: dict = None):
        payload = dict(details or {})
        if conflicts is not None:
            payload["conflicts"] = conflicts
        self.conflicts = list(conflicts or [])
        super().__init__(message, status_code=409, details=payload)


class InternalError(AppError):
    """Raised when a repository or transaction fails. Chain the cause with ``raise ... from``."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)


@contextmanager
def reraise_as_internal(message: str) -> Iterator[None]:
    """Let ``AppError`` through untouched and wrap anything else as ``InternalError``."""
    try:
        yield
    except AppError:
        raise
    except Exception as exc:
        logger.exception("internal_error | %s", message)
        raise InternalError(message) from exc
