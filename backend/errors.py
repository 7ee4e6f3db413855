"""
エラー定義と一括エラーハンドラ

ドメインエラーは検出箇所で AppError として送出し、
create_app() で登録するハンドラで一括してレスポンスに変換する。
"""

import enum
import logging
import traceback
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UPSTREAM = "upstream"
    INTERNAL = "internal"


STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UPSTREAM: 500,
    ErrorKind.INTERNAL: 500,
}


class AppError(Exception):
    """HTTPステータスに対応する種別を持つアプリケーションエラー"""

    def __init__(self, kind: ErrorKind, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.errors = errors

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


def format_validation_errors(errors) -> list:
    """pydantic のエラー一覧を {path, message} 形式に変換"""
    formatted = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
        formatted.append({"path": ".".join(loc), "message": error.get("msg", "")})
    return formatted


def _error_response(request: Request, status_code: int, message: str, errors=None, exc: Optional[BaseException] = None):
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {status_code}: {message}", exc_info=exc)
    else:
        logger.warning(f"{request.method} {request.url.path} -> {status_code}: {message}")

    body = {"status": "error", "message": message}
    if errors:
        body["errors"] = errors

    settings = getattr(request.app.state, "settings", None)
    if exc is not None and settings is not None and not settings.is_production:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    return JSONResponse(status_code=status_code, content=body)


async def app_error_handler(request: Request, exc: AppError):
    return _error_response(request, exc.status_code, exc.message, exc.errors, exc)


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return _error_response(request, 400, "Validation error", format_validation_errors(exc.errors()), exc)


async def pydantic_validation_error_handler(request: Request, exc: ValidationError):
    return _error_response(request, 400, "Validation error", format_validation_errors(exc.errors()), exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return _error_response(request, exc.status_code, message)


async def unhandled_exception_handler(request: Request, exc: Exception):
    return _error_response(request, 500, "Server Error", exc=exc)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ValidationError, pydantic_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
