"""
Exception handlers that render every error as ``{"error": "<message>"}``.

- ``HTTPException`` keeps its status code (400/401/404 raised by routers
  and dependencies).
- Request validation errors become 400 instead of FastAPI's default 422.
- Database errors and anything else unhandled become 500; the exception
  is logged with its traceback, never echoed to the client.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Human-readable names for path/query parameters in validation messages.
_PARAM_LABELS = {
    "page": "page",
    "limit": "limit",
    "page_num": "page number",
    "page_limit": "page limit",
}


def error_body(message: str) -> dict:
    return {"error": message}


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    loc = first.get("loc", ())
    if loc and loc[0] in ("path", "query") and len(loc) > 1:
        name = str(loc[1])
        return f"Invalid {_PARAM_LABELS.get(name, name)} parameter"

    field = ".".join(str(part) for part in loc[1:]) if len(loc) > 1 else "body"
    return f"Invalid request body: {field}: {first.get('msg', 'invalid value')}"


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _validation_message(exc)
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(message))


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error"),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error"),
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
