"""
File: userhub/domains/captcha/repository.py
Description: 短信验证码存储 (Redis)

键:   "{CAPTCHA_KEY_PREFIX}:{phone}"
值:   6 位数字验证码
TTL:  CAPTCHA_EXPIRE_SECONDS (默认 300 秒)

同一手机号重复下发会覆盖旧验证码并重置 TTL。

Created: 2026-03-02
"""

from redis.asyncio import Redis

from userhub.core.config import settings


class CaptchaRepository:
    def __init__(self, redis: Redis, prefix: str | None = None):
        self.redis = redis
        self.prefix = prefix or settings.CAPTCHA_KEY_PREFIX

    def _key(self, phone: str) -> str:
        return f"{self.prefix}:{phone}"

    async def set(self, phone: str, code: str, ttl_seconds: int | None = None) -> None:
        await self.redis.set(
            self._key(phone), code, ex=ttl_seconds or settings.CAPTCHA_EXPIRE_SECONDS
        )

    async def get(self, phone: str) -> str | None:
        """验证码不存在或已过期返回 None"""
        return await self.redis.get(self._key(phone))

    async def delete(self, phone: str) -> bool:
        """返回是否确实删除了验证码 (并发消费时只有一方为 True)"""
        return bool(await self.redis.delete(self._key(phone)))
