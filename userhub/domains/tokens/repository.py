"""
File: userhub/domains/tokens/repository.py
Description: 令牌吊销存储 (Redis JTI 黑名单)

键:   "{TOKEN_BLACKLIST_PREFIX}:jti:{jti}"
值:   "blacklisted"
TTL:  令牌剩余寿命；到期后令牌本身已失效，键随之自动清除

写入异常 (RedisError) 原样抛出，由 TokenService 决定是否吞掉。

Created: 2026-03-02
"""

from redis.asyncio import Redis

from userhub.core.config import settings
from userhub.domains.tokens.constants import BLACKLIST_KEY_SEGMENT, BLACKLIST_VALUE


class TokenBlacklistRepository:
    """JTI 黑名单仓储"""

    def __init__(self, redis: Redis, prefix: str | None = None):
        self.redis = redis
        self.prefix = prefix or settings.TOKEN_BLACKLIST_PREFIX

    def _key(self, jti: str) -> str:
        return f"{self.prefix}:{BLACKLIST_KEY_SEGMENT}:{jti}"

    async def add(self, jti: str, ttl_ms: int) -> None:
        """
        将 JTI 加入黑名单。
        ttl_ms <= 0 时令牌已过期，不写入。
        """
        if ttl_ms <= 0:
            return
        await self.redis.set(self._key(jti), BLACKLIST_VALUE, px=ttl_ms)

    async def claim(self, jti: str, ttl_ms: int) -> bool:
        """
        原子占用 JTI (SET NX PX)。

        Returns:
            True: 本次调用首次写入，调用方获得该 JTI 的唯一使用权
            False: JTI 已在黑名单中 (已被其他请求使用或已吊销)
        """
        if ttl_ms <= 0:
            return True
        result = await self.redis.set(
            self._key(jti), BLACKLIST_VALUE, px=ttl_ms, nx=True
        )
        return bool(result)

    async def is_blacklisted(self, jti: str) -> bool:
        return bool(await self.redis.exists(self._key(jti)))
