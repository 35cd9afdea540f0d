"""
File: userhub/core/middleware.py
Description: 中间件配置与实现

1. RequestLogMiddleware：
   - 生成 UUID v7 request_id（或沿用上游网关传入的 X-Request-ID）
   - 绑定 Loguru 上下文
   - 记录访问日志（含调用平台 X-Platform）
   - 添加 X-Request-ID 响应头
2. register_middlewares：统一注册 CORS、RequestLogMiddleware

Created: 2026-03-02
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from uuid6 import uuid7

from userhub.core.config import settings

# 跳过访问日志的路径
SKIP_LOG_PATHS: set[str] = {"/health", "/health/", "/favicon.ico"}

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64


class RequestLogMiddleware(BaseHTTPMiddleware):
    """全局请求日志中间件"""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH:
            request_id = incoming
        else:
            request_id = str(uuid7())

        request.state.request_id = request_id
        skip_log = request.url.path in SKIP_LOG_PATHS

        # with 块内 Router/Service/Repo 的日志都会携带 request_id
        with logger.contextualize(request_id=request_id):
            start_time = time.perf_counter()

            try:
                response = await call_next(request)
                response.headers[REQUEST_ID_HEADER] = request_id

                if not skip_log:
                    process_time = (time.perf_counter() - start_time) * 1000
                    logger.bind(
                        method=request.method,
                        path=request.url.path,
                        status_code=response.status_code,
                        duration_ms=round(process_time, 2),
                        platform=request.headers.get("X-Platform", ""),
                        client_ip=request.client.host if request.client else "unknown",
                        user_agent=request.headers.get("user-agent", ""),
                    ).info("Request finished")

                return response

            except Exception as exc:
                process_time = (time.perf_counter() - start_time) * 1000
                logger.bind(
                    method=request.method,
                    path=request.url.path,
                    duration_ms=round(process_time, 2),
                ).opt(exception=exc).error("Request failed with unhandled exception")
                raise


def register_middlewares(app: FastAPI) -> None:
    """
    统一注册所有中间件。
    后注册的中间件先执行 (请求进入方向)。
    """
    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            # Web 端 Refresh Token 通过 Cookie 携带
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=[REQUEST_ID_HEADER],
        )

    app.add_middleware(RequestLogMiddleware)
