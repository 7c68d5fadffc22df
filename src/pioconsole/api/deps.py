"""Request helpers shared by the route modules."""

from __future__ import annotations

from fastapi import HTTPException, Request

from pioconsole.exceptions import (
    BackendError,
    ConsoleError,
    ProfileError,
    TimeoutError,
    ValidationError,
)
from pioconsole.session import ConsoleSession


def get_session(request: Request) -> ConsoleSession:
    return request.app.state.session


def http_error(exc: ConsoleError) -> HTTPException:
    """Map a core exception to the matching HTTP status."""
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, TimeoutError):
        return HTTPException(status_code=504, detail=str(exc))
    if isinstance(exc, ProfileError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, BackendError):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
