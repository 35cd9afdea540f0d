"""
File: userhub/db/session.py
Description: 数据库会话管理 (Async SQLAlchemy)

本模块负责：
1. 创建全局唯一的 AsyncEngine (生产为 postgresql+asyncpg)
2. 连接池参数从 Settings 读取
3. 创建 AsyncSession 工厂 (AsyncSessionLocal)
4. 集成 orjson 作为 JSON 序列化器
5. 提供引擎关闭函数用于优雅退出

Created: 2026-03-02
"""

from typing import Any

import orjson
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from userhub.core.config import settings


def _orjson_serializer(obj: Any) -> str:
    # orjson 返回 bytes，SQLAlchemy 需要 str
    return orjson.dumps(obj).decode("utf-8")


def _orjson_deserializer(obj: str | bytes) -> Any:
    return orjson.loads(obj)


def _engine_options(url: str) -> dict[str, Any]:
    """连接池与驱动参数仅对 PostgreSQL 生效"""
    if not url.startswith("postgresql"):
        return {}
    return {
        "pool_pre_ping": settings.DB_POOL_PRE_PING,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "connect_args": {"ssl": False},
    }


_database_url = str(settings.SQLALCHEMY_DATABASE_URI)

# echo 仅在 DEBUG 模式开启
engine: AsyncEngine = create_async_engine(
    _database_url,
    echo=settings.is_debug,
    json_serializer=_orjson_serializer,
    json_deserializer=_orjson_deserializer,
    **_engine_options(_database_url),
)

# expire_on_commit=False：commit 后访问属性不触发隐式 IO
AsyncSessionLocal: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def close_engine() -> None:
    """关闭数据库引擎，在 lifespan shutdown 阶段调用。"""
    await engine.dispose()
