# utils/errors.py
import logging
from typing import Any, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from schemas.response import ApiErrorResponse

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """HTTPException carrying the envelope fields (message plus an errors list)."""

    def __init__(
        self,
        status_code: int,
        message: str = "Something went wrong",
        errors: Optional[List[Any]] = None,
        headers: Optional[dict] = None,
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message
        self.errors = errors or []


def error_response(status_code: int, message: str, errors: Optional[List[Any]] = None, headers=None) -> JSONResponse:
    body = ApiErrorResponse(statusCode=status_code, message=message, errors=errors or [])
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


def _validation_message(errors: List[dict]) -> str:
    if not errors:
        return "Invalid request"
    msg = str(errors[0].get("msg", "Invalid request"))
    # pydantic prefixes messages raised from our validators
    return msg.removeprefix("Value error, ")


def register_exception_handlers(app: FastAPI) -> None:
    """Every error leaves the API in the same envelope as successful responses."""

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        errors = getattr(exc, "errors", None)
        if errors is None and not isinstance(exc.detail, str):
            errors = [exc.detail]
        log_fn = logger.error if exc.status_code >= 500 else logger.info
        log_fn("%s %s -> %s %s", request.method, request.url.path, exc.status_code, message)
        return error_response(exc.status_code, message, errors, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors())
        message = _validation_message(errors)
        logger.info("%s %s -> 400 %s", request.method, request.url.path, message)
        return error_response(400, message, errors)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, "Internal Server Error")
