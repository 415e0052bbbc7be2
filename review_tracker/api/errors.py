"""Mapping from service-layer errors to HTTP errors."""

from fastapi import HTTPException, status

from ..services import NotFoundError, ReviewTrackerError, ValidationError


def http_error(exc: ReviewTrackerError) -> HTTPException:
    """Translate a domain error into the matching HTTP error."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
