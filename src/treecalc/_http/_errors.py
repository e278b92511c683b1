"""Mapping of treecalc errors to HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from treecalc._errors import (
    DanglingParentError,
    NotFoundError,
    ReferenceParseError,
    TreecalcError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def status_code_for(error: TreecalcError) -> int:
    """Choose the HTTP status code for an error.

    Missing entities (including a dangling parent) are 404, invariant and
    reference-format violations are 400, and evaluation failures are 500.
    """
    match error:
        case NotFoundError() | DanglingParentError():
            return status.HTTP_404_NOT_FOUND
        case ValidationError() | ReferenceParseError():
            return status.HTTP_400_BAD_REQUEST
        case _:
            return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_body(kind: str, detail: str) -> dict[str, str]:
    return {"error": kind, "detail": detail}


async def _handle_treecalc_error(request: Request, exc: TreecalcError) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.info("%s %s -> %d: %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(status_code=status_code, content=_error_body(type(exc).__name__, str(exc)))


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("InternalServerError", "Internal server error"),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TreecalcError, _handle_treecalc_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)
