# app/core/exceptions.py
import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PromptLibraryError(Exception):
    """Base for errors that map directly onto an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal Server Error"

    def __init__(self, detail: Any = None):
        self.detail = detail if detail is not None else self.default_detail
        super().__init__(str(self.detail))


class Unauthenticated(PromptLibraryError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"


class Forbidden(PromptLibraryError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not allowed to modify this prompt"


class NotFound(PromptLibraryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ValidationError(PromptLibraryError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class Conflict(PromptLibraryError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Already exists"


class StoreUnavailable(PromptLibraryError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Database unavailable"


async def prompt_library_error_handler(request: Request, exc: PromptLibraryError):
    if isinstance(exc, StoreUnavailable):
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    headers = None
    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": jsonable_encoder(exc.detail)},
        headers=headers,
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PromptLibraryError, prompt_library_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
