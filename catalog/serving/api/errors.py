"""
HTTP Error Mapping

Translates catalog errors raised by the core into JSON error responses.
"""

from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from catalog.core.errors import (
    AlreadyExistsError,
    CatalogError,
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

STATUS_CODES: Dict[Type[CatalogError], int] = {
    NotFoundError: 404,
    AlreadyExistsError: 409,
    ConflictError: 409,
    InvalidArgumentError: 400,
    ValidationError: 422,
}


def status_code_for(error: CatalogError) -> int:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 500


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.warning(
        "Request rejected",
        path=request.url.path,
        code=exc.code,
        status_code=status_code,
        message=exc.message,
    )
    content = {"error": exc.code, "message": exc.message}
    if isinstance(exc, ValidationError):
        content["validationErrors"] = exc.errors
    return JSONResponse(status_code=status_code, content=content)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CatalogError, catalog_error_handler)
