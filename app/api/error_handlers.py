from __future__ import annotations

from typing import Any, Iterable

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging import get_logger
from app.services.exceptions import ServiceError

logger = get_logger("app.errors")

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


def format_validation_errors(errors: Iterable[dict[str, Any]]) -> str:
    """Flatten pydantic errors into the single message the UI shows."""
    messages: list[str] = []
    for error in errors:
        ctx_error = (error.get("ctx") or {}).get("error")
        if error.get("type") == "value_error" and ctx_error is not None:
            message = str(ctx_error)
        else:
            loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
            field = ".".join(loc)
            message = f"{field}: {error.get('msg')}" if field else str(error.get("msg"))
        if message not in messages:
            messages.append(message)
    return ", ".join(messages) or "Invalid request"


def error_envelope(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _is_api_request(request: Request) -> bool:
    return request.url.path.startswith(settings.API_PREFIX + "/")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        return error_envelope(exc.detail, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        if not _is_api_request(request):
            return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})
        return error_envelope(format_validation_errors(exc.errors()), status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error while serving %s", request.url.path)
        return error_envelope(UNEXPECTED_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)
