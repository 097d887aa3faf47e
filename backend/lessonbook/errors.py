# backend/lessonbook/errors.py
"""
Application-wide error handlers.

Every error response uses the body ``{"detail": {"code", "message", "details"}}``.
Domain errors reach the client through ``handle_domain_exception``; request
validation failures are reported as 400 ``VALIDATION_ERROR``.
"""

import logging
from typing import NoReturn

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .core.exceptions import DomainException

logger = logging.getLogger(__name__)


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _error_body(code: str, message: str, details: object) -> dict:
    return {"detail": {"code": code, "message": message, "details": details}}


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = jsonable_encoder(exc.errors())
        logger.info(
            f"Request validation failed on {request.url.path}",
            extra={"path": request.url.path, "error_count": len(errors)},
        )
        return JSONResponse(
            _error_body("VALIDATION_ERROR", "Request validation failed", {"errors": errors}),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        http_exc = exc.to_http_exception()
        return JSONResponse({"detail": http_exc.detail}, status_code=http_exc.status_code)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}")
        return JSONResponse(
            _error_body("INTERNAL_ERROR", "Internal Server Error", {}),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
