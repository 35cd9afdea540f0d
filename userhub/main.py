"""
File: userhub/main.py
Description: FastAPI 应用入口与工厂函数

本模块负责：
1. 创建 FastAPI 应用实例 (默认响应类 ORJSONResponse)
2. 管理应用生命周期 (lifespan): 启动日志；关闭数据库、Redis 与外部 HTTP 客户端
3. 组装全局组件：中间件、异常处理器、路由
4. 提供健康检查接口 (/health)

Created: 2026-03-02
"""

import asyncio
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

# asyncpg 在 Windows 下需要 SelectorEventLoop，必须在事件循环启动前设置
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


from fastapi import FastAPI
from fastapi.responses import ORJSONResponse

from userhub.api_router import api_router
from userhub.clients.sms import sms_client
from userhub.clients.wechat import wechat_client
from userhub.core.config import settings
from userhub.core.exceptions import register_exception_handlers
from userhub.core.logging import setup_logging
from userhub.core.middleware import register_middlewares
from userhub.core.redis import close_redis
from userhub.db.session import close_engine


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()

    yield

    await wechat_client.close()
    await sms_client.close()
    await close_redis()
    await close_engine()


def create_app() -> FastAPI:
    """应用工厂函数"""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
        # 生产环境关闭交互式文档
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
    )

    # 1. 中间件 (CORS, RequestID, Logging)
    register_middlewares(app)

    # 2. 异常处理器
    register_exception_handlers(app)

    # 3. 业务路由
    app.include_router(api_router, prefix=settings.API_V1_STR)

    # 4. 健康检查：返回原始 JSON，不使用统一信封，便于 K8s / LB 解析
    @app.get("/health", tags=["health"], summary="健康检查")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app


# 暴露给 Uvicorn 运行的应用实例
app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
