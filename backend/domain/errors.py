"""
Typed failures raised by the services layer.

The API layer maps `kind` to an HTTP status; services never import FastAPI.
"""
from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    EXTERNAL = "external"


class SpotclipError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SpotclipError):
    """Caller supplied a missing or malformed field."""
    kind = ErrorKind.VALIDATION


class NotFoundError(SpotclipError):
    """Referenced collection or place does not exist."""
    kind = ErrorKind.NOT_FOUND


class ExternalServiceError(SpotclipError):
    """The external model failed. Always caught at the pipeline boundary."""
    kind = ErrorKind.EXTERNAL
