"""
File: userhub/core/redis.py
Description: Redis 客户端管理 (Async)

Redis 在本服务中承担两类短期状态：
1. 令牌黑名单 (JTI -> "blacklisted"，TTL = 令牌剩余寿命)
2. 短信验证码 (phone -> code，TTL 5 分钟)

使用 decode_responses=True，读取结果统一为 str。

Created: 2026-03-02
"""

from collections.abc import AsyncGenerator

from redis.asyncio import Redis, from_url

from userhub.core.config import settings

# redis-py 内部维护连接池，全局单例即可
redis_client: Redis = from_url(
    settings.REDIS_URL,
    encoding="utf-8",
    decode_responses=True,
)


async def get_redis() -> AsyncGenerator[Redis, None]:
    """
    获取 Redis 客户端依赖。
    封装为依赖注入，测试中可 override 为 fakeredis。
    """
    yield redis_client


async def close_redis() -> None:
    """关闭 Redis 连接池，在 lifespan shutdown 阶段调用。"""
    await redis_client.aclose()
