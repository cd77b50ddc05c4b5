"""
全局异常处理器
"""
import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.errors import AppError, PartialOperationError, error_response

logger = logging.getLogger(__name__)


def _field_messages(exc: RequestValidationError) -> Dict[str, str]:
    """把 pydantic 错误列表整理为 {字段: 消息}，同一字段只保留第一条"""
    fields: Dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        name = ".".join(loc) or "__root__"
        message = err.get("msg", "Invalid value")
        # field_validator 抛出的 ValueError 带有 "Value error, " 前缀
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        fields.setdefault(name, message)
    return fields


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if isinstance(exc, PartialOperationError):
            logger.error(f"{request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content=error_response(
                "validation_error",
                "Request validation failed",
                {"fields": _field_messages(exc)},
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = "not_found" if exc.status_code == 404 else "http_error"
        detail: Any = exc.detail
        if isinstance(detail, dict):
            message = detail.get("message", "HTTP error")
            details = detail
            code = detail.get("code", code)
        else:
            message = str(detail)
            details = {}
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(code, message, details),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content=error_response("internal_error", "Unexpected server error"),
        )
