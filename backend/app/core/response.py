"""
统一响应信封
成功: {"code": 0, "data": ...}；业务失败: {"code": 1, "message": ...}
"""
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Optional
from app.core.errors import LedgerError, InvalidInput, StoreUnavailable
import logging

logger = logging.getLogger(__name__)

CODE_OK = 0
CODE_FAIL = 1


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    """构造成功响应"""
    body = {"code": CODE_OK}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = jsonable_encoder(data)
    return body


def fail(message: str, code: int = CODE_FAIL, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """构造失败响应"""
    return JSONResponse(status_code=status_code, content={"code": code, "message": message})


async def ledger_error_handler(request: Request, exc: LedgerError):
    logger.warning(f"{request.url.path} 失败: {exc.kind.value} - {exc.message}")
    return fail(exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"{request.url.path} 参数校验失败: {exc.errors()}")
    return fail(InvalidInput.default_message)


async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"{request.url.path} 数据库错误")
    return fail(StoreUnavailable.default_message)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return fail("API 不存在", code=404, status_code=404)
    return fail(str(exc.detail), status_code=exc.status_code)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"服务器错误: {request.url.path}")
    return fail("服务器内部错误", code=500, status_code=500)


def register_exception_handlers(app: FastAPI) -> None:
    """把业务错误和框架错误统一映射为响应信封"""
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
