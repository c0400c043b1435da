"""Failure categories raised by the booking core.

Each category carries the HTTP status the API layer answers with, so request
handlers never need to translate them one by one.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class DomainError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Malformed or missing input. The caller may resubmit corrected data."""

    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(DomainError):
    """The caller is authenticated but not allowed to perform the action."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    """A booking or lifecycle invariant would be violated."""

    status_code = status.HTTP_409_CONFLICT


class InvalidStateError(ConflictError):
    """The record is not in the state the requested transition starts from."""


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={'detail': exc.message})
