"""Exception handlers rendering every failure as the error envelope."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from protean.exceptions import ObjectNotFoundError, ValidationError
from starlette.exceptions import HTTPException

from orderflow.api.envelope import error
from orderflow.errors import InternalError, OrderflowError

logger = structlog.get_logger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(OrderflowError)
    async def _orderflow_error(request: Request, exc: OrderflowError):
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, code=exc.code, error=exc.message)
            return error("Internal server error", exc.status_code, exc.code)
        return error(exc.message, exc.status_code, exc.code, exc.errors)

    @app.exception_handler(ValidationError)
    async def _domain_validation_error(request: Request, exc: ValidationError):
        return error("Validation failed", 400, "validation_error", exc.messages)

    @app.exception_handler(ObjectNotFoundError)
    async def _object_not_found(request: Request, exc: ObjectNotFoundError):
        return error("Resource not found", 404, "not_found")

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(part) for part in e.get("loc", ()) if part != "body"), "message": e.get("msg")}
            for e in exc.errors()
        ]
        return error("Invalid request", 400, "invalid_request", details)

    @app.exception_handler(HTTPException)
    async def _http_exception(request: Request, exc: HTTPException):
        return error(str(exc.detail), exc.status_code, "http_error")

    @app.exception_handler(Exception)
    async def _unhandled_exception(request: Request, exc: Exception):
        logger.exception("unhandled_exception", path=request.url.path, method=request.method)
        failure = InternalError("Internal server error")
        return error(failure.message, failure.status_code, failure.code)
