# errors.py - Domain error kinds, translated to HTTP responses in main.py
from typing import Optional


class TaskflowError(Exception):
    """Base class for errors that carry their own HTTP status"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TaskflowError):
    status_code = 404


class ValidationError(TaskflowError):
    status_code = 400


class PermissionDenied(TaskflowError):
    status_code = 403


class StoreFailure(TaskflowError):
    """Persistence error not otherwise classified; keeps the underlying cause"""
    status_code = 500

    def __init__(self, message: str, cause: Optional[str] = None):
        super().__init__(message)
        self.cause = cause
