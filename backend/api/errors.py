"""
Map domain errors onto HTTP errors.
"""
from fastapi import HTTPException

from domain.errors import ErrorKind, SpotclipError

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.EXTERNAL: 502,
}


def to_http_exception(exc: SpotclipError) -> HTTPException:
    return HTTPException(status_code=STATUS_BY_KIND.get(exc.kind, 500), detail=exc.message)
