import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from schemas.common import ErrorResponse
from services.errors import LeaveError

logger = logging.getLogger(__name__)

ERR_BAD_REQUEST = "請求參數格式錯誤"


def _error(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=headers,
    )


def add_error_handlers(app: FastAPI):
    # ✅ 業務錯誤: 訊息原樣回傳給前端，不視為系統錯誤
    @app.exception_handler(LeaveError)
    async def leave_error_handler(request: Request, exc: LeaveError):
        logger.info(f"{request.method} {request.url.path} → {exc.status_code}: {exc.message}")
        return _error(exc.status_code, exc.message)

    # ✅ Body/Query 格式錯誤 → 400 (前端只需要一行訊息)
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info(f"{request.method} {request.url.path} → 400: {exc.errors()}")
        return _error(400, ERR_BAD_REQUEST)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} 發生未預期錯誤")
        return _error(500, str(exc))
