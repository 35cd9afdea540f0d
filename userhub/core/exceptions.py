"""
File: userhub/core/exceptions.py
Description: 业务异常类与全局异常处理器

1. AppException 接受 BaseErrorCode 枚举，是 Service 层对外抛出的唯一异常类型
2. 全局异常处理器将异常映射为：语义化 HTTP 状态码 + 字符串业务码
3. 失败响应同样使用统一信封 ResponseModel.fail()

日志级别：4xx 业务异常记 warning，5xx (数据库 / 缓存 / 上游故障) 记 error。
校验错误中的原始输入 (可能包含密码、验证码) 不回传也不落日志。

Created: 2026-03-02
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from userhub.core.error_code import BaseErrorCode, SystemErrorCode
from userhub.core.response import ResponseModel, get_request_id

# 校验错误中需要剔除的键
_UNSAFE_ERROR_KEYS = ("input", "ctx", "url")


class AppException(Exception):
    """
    应用基础异常类。

    用法示例:
        raise AppException(AuthError.INVALID_CREDENTIALS)
        raise AppException(SystemErrorCode.UNAUTHORIZED, message="缺少访问令牌")
    """

    def __init__(
        self,
        error: BaseErrorCode,
        message: str = "",
        data: Any = None,
    ):
        self.error = error
        self.http_status = error.http_status
        self.code = error.code
        self.message = message or error.msg
        self.data = data
        super().__init__(self.message)


def _envelope(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    data: Any = None,
    headers: dict[str, str] | None = None,
) -> ORJSONResponse:
    body = ResponseModel.fail(code=code, message=message, data=data, request=request)
    return ORJSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=headers,
    )


# ------------------------------------------------------------------------------
# 全局异常处理器 (Handlers)
# ------------------------------------------------------------------------------


async def app_exception_handler(request: Request, exc: AppException) -> ORJSONResponse:
    log = logger.bind(
        request_id=get_request_id(request),
        code=exc.code,
        http_status=exc.http_status,
    )
    if exc.http_status >= 500:
        log.error(f"Service failure: {exc.message}")
    else:
        log.warning(f"Business exception occurred: {exc.message}")

    return _envelope(request, exc.http_status, exc.code, exc.message, exc.data)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """
    处理请求参数校验异常 (FastAPI 默认 422)
    映射目标: HTTP 400 / system.invalid_params
    """
    errors = [
        {k: v for k, v in err.items() if k not in _UNSAFE_ERROR_KEYS}
        for err in exc.errors()
    ]
    first_error = errors[0] if errors else {}

    # loc 示例: ('body', 'phone') / ('header', 'X-Platform')
    loc = first_error.get("loc", [])
    field_name = str(loc[-1]) if loc else "unknown"
    readable_message = f"{field_name}: {first_error.get('msg', 'Invalid parameter')}"

    logger.bind(request_id=get_request_id(request), detail=readable_message).warning(
        "Request validation failed"
    )

    return _envelope(
        request,
        SystemErrorCode.INVALID_PARAMS.http_status,
        SystemErrorCode.INVALID_PARAMS.code,
        readable_message,
        data={"errors": jsonable_encoder(errors)},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> ORJSONResponse:
    """处理框架层面的 HTTP 异常 (404 / 405 等)"""
    code = "system.not_found" if exc.status_code == 404 else "system.http_error"

    logger.bind(
        request_id=get_request_id(request),
        status_code=exc.status_code,
        detail=str(exc.detail),
    ).warning("Framework HTTP exception occurred")

    return _envelope(
        request,
        exc.status_code,
        code,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """未捕获异常：记录完整堆栈，对外只返回通用错误"""
    logger.opt(exception=exc).bind(request_id=get_request_id(request)).error(
        "Unhandled system exception occurred"
    )

    return _envelope(
        request,
        SystemErrorCode.INTERNAL_ERROR.http_status,
        SystemErrorCode.INTERNAL_ERROR.code,
        SystemErrorCode.INTERNAL_ERROR.msg,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """统一注册所有异常处理器，在 main.py 中调用。"""
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore
    app.add_exception_handler(Exception, general_exception_handler)
