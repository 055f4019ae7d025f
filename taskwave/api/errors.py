import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..exceptions import ServerError, TaskWaveError

logger = logging.getLogger(__name__)


def _error_response(request: Request, status_code: int, message: str, **extra) -> JSONResponse:
    content = {"error": message, "status": status_code, "path": request.url.path}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def register_exception_handlers(app: FastAPI) -> None:
    """Attach simple, consistent JSON error handlers."""

    @app.exception_handler(TaskWaveError)
    async def domain_exception_handler(request: Request, exc: TaskWaveError):
        if isinstance(exc, ServerError):
            # Log the real cause; the caller only sees the generic message
            logger.error(
                "server error method=%s path=%s: %s",
                request.method,
                request.url.path,
                exc,
                exc_info=exc,
            )
            return _error_response(request, exc.status_code, ServerError.message)
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        response = _error_response(request, exc.status_code, exc.message)
        if headers:
            response.headers.update(headers)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(
            request,
            exc.status_code,
            exc.detail if isinstance(exc.detail, str) else "HTTPError",
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Malformed JSON or wrong field types are plain bad input here
        return _error_response(request, 400, "ValidationError", details=exc.errors())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled error method=%s path=%s", request.method, request.url.path)
        return _error_response(request, 500, ServerError.message)
