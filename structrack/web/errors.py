"""Map domain errors onto HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from structrack.errors import (
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    TypeInUseError,
)

STATUS_BY_ERROR: list[tuple[type[Exception], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (TypeInUseError, status.HTTP_409_CONFLICT),
    (InvalidInputError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (StoreError, status.HTTP_502_BAD_GATEWAY),
]


def add_exception_handlers(app: FastAPI) -> None:
    for error_cls, status_code in STATUS_BY_ERROR:

        async def handler(request: Request, exc: Exception, status_code: int = status_code):
            return JSONResponse(
                status_code=status_code,
                content={"detail": str(exc), "error": type(exc).__name__},
            )

        app.add_exception_handler(error_cls, handler)
