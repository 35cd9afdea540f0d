"""
File: userhub/domains/tokens/service.py
Description: 令牌服务 (签发 / 解析 / 旋转 / 吊销)

本模块负责：
1. 签发: Access Token (15 分钟, SECRET_KEY) 与 Refresh Token (10 天, REFRESH_SECRET_KEY)
2. 解析: 校验签名、过期时间、签发方，Access Token 无状态校验，不查黑名单
3. 旋转: 黑名单检查 -> 重新加载用户并校验状态 -> 原子占用旧 JTI -> 签发新令牌
4. 吊销: 宽松解析，将 JTI 按剩余寿命写入黑名单；写入失败只记录日志

旋转并发：
旧 JTI 通过 SET NX 原子占用，同一 Refresh Token 的并发旋转只有一个请求成功，
其余请求收到 token.revoked。

Created: 2026-03-02
"""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from loguru import logger
from pydantic import ValidationError
from redis.exceptions import RedisError
from uuid6 import uuid7

from userhub.core.config import settings
from userhub.core.error_code import SystemErrorCode
from userhub.core.exceptions import AppException
from userhub.core.security import (
    TokenInvalidError,
    decode_jwt,
    encode_jwt,
)
from userhub.db.models.enums import Platform, UserRole, UserStatus
from userhub.db.models.user import User
from userhub.domains.identity.service import IdentityResolver
from userhub.domains.tokens.constants import TokenError
from userhub.domains.tokens.repository import TokenBlacklistRepository
from userhub.domains.tokens.schemas import TokenClaims, TokenPair


class TokenService:
    """令牌生命周期服务"""

    def __init__(
        self,
        blacklist: TokenBlacklistRepository,
        resolver: IdentityResolver,
    ):
        self.blacklist = blacklist
        self.resolver = resolver

    # --------------------------------------------------------------------------
    # 签发
    # --------------------------------------------------------------------------

    @staticmethod
    def _build_claims(
        user_id: uuid.UUID,
        platform: Platform,
        ttl: timedelta,
        role: UserRole | None = None,
        status: UserStatus | None = None,
    ) -> dict[str, Any]:
        now = datetime.now(UTC)
        return {
            "user_id": str(user_id),
            "role": role.value if role else None,
            "status": status.value if status else None,
            "platform": platform.value,
            "jti": str(uuid7()),
            "iss": settings.JWT_ISSUER,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }

    def generate_access_token(
        self,
        user_id: uuid.UUID,
        role: UserRole,
        status: UserStatus,
        platform: Platform,
    ) -> str:
        claims = self._build_claims(
            user_id,
            platform,
            timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            role=role,
            status=status,
        )
        return encode_jwt(claims, settings.SECRET_KEY)  # type: ignore[arg-type]

    def generate_refresh_token(self, user_id: uuid.UUID, platform: Platform) -> str:
        claims = self._build_claims(
            user_id, platform, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        )
        return encode_jwt(claims, settings.REFRESH_SECRET_KEY)  # type: ignore[arg-type]

    def issue_pair(self, user: User, platform: Platform) -> TokenPair:
        """按持久化的角色 / 状态签发双 Token"""
        return TokenPair(
            access_token=self.generate_access_token(
                user.id, UserRole(user.role), UserStatus(user.status), platform
            ),
            refresh_token=self.generate_refresh_token(user.id, platform),
            expires_in=settings.access_token_ttl_seconds,
        )

    # --------------------------------------------------------------------------
    # 解析
    # --------------------------------------------------------------------------

    @staticmethod
    def _parse(token: str, secret_key: str) -> TokenClaims:
        payload = decode_jwt(token, secret_key)
        try:
            return TokenClaims.model_validate(payload)
        except ValidationError as e:
            raise TokenInvalidError("malformed claims") from e

    @staticmethod
    def parse_access_token(token: str) -> TokenClaims:
        """
        无状态校验 Access Token (不查黑名单)。

        Raises:
            TokenExpiredError / TokenInvalidError
        """
        return TokenService._parse(token, settings.SECRET_KEY)  # type: ignore[arg-type]

    @staticmethod
    def parse_refresh_token(token: str) -> TokenClaims:
        """
        Raises:
            TokenExpiredError / TokenInvalidError
        """
        return TokenService._parse(token, settings.REFRESH_SECRET_KEY)  # type: ignore[arg-type]

    # --------------------------------------------------------------------------
    # 旋转
    # --------------------------------------------------------------------------

    async def rotate(self, refresh_token: str) -> TokenPair:
        """
        用 Refresh Token 换取新的双 Token，旧 Refresh Token 失效。

        Raises:
            AppException(TokenError.INVALID): 解析失败 / 过期
            AppException(TokenError.REVOKED): 已在黑名单或并发旋转落败
            AppException(TokenError.USER_INACTIVE): 用户已被拉黑或删除
            AppException(SystemErrorCode.CACHE_ERROR): 黑名单读取失败
            AppException(SystemErrorCode.DATA_INTEGRITY): 用户行缺失
        """
        try:
            claims = self.parse_refresh_token(refresh_token)
        except TokenInvalidError as e:
            logger.bind(operation="token.rotate", reason=str(e)).warning(
                "Refresh token rejected"
            )
            raise AppException(TokenError.INVALID) from e

        log = logger.bind(
            operation="token.rotate", user_id=str(claims.user_id), jti=claims.jti
        )

        try:
            blacklisted = await self.blacklist.is_blacklisted(claims.jti)
        except RedisError as e:
            log.opt(exception=e).error("Blacklist lookup failed")
            raise AppException(SystemErrorCode.CACHE_ERROR) from e

        if blacklisted:
            log.warning("Blacklisted refresh token presented")
            raise AppException(TokenError.REVOKED)

        # 角色 / 状态以数据库当前值为准，不信任旧 Claims
        user = await self.resolver.load_user(claims.user_id)
        self.resolver.ensure_active(user, error=TokenError.USER_INACTIVE)

        try:
            claimed = await self.blacklist.claim(claims.jti, claims.remaining_ms())
        except RedisError as e:
            log.opt(exception=e).error("Failed to invalidate old refresh token")
            claimed = True

        if not claimed:
            log.warning("Refresh token already used by a concurrent request")
            raise AppException(TokenError.REVOKED)

        pair = self.issue_pair(user, claims.platform)
        log.info("Refresh token rotated")
        return pair

    # --------------------------------------------------------------------------
    # 吊销
    # --------------------------------------------------------------------------

    def _parse_any(self, token: str) -> TokenClaims | None:
        """依次尝试 Refresh / Access 密钥；均失败返回 None"""
        for parse in (self.parse_refresh_token, self.parse_access_token):
            try:
                return parse(token)
            except TokenInvalidError:
                continue
        return None

    async def revoke(self, token: str) -> None:
        """
        吊销令牌。无法解析或已过期的令牌直接忽略；黑名单写入失败只记日志。
        """
        claims = self._parse_any(token)
        if claims is None:
            logger.bind(operation="token.revoke").info(
                "Unparsable or expired token ignored on revoke"
            )
            return

        ttl_ms = claims.remaining_ms()
        if ttl_ms <= 0:
            return

        log = logger.bind(
            operation="token.revoke", user_id=str(claims.user_id), jti=claims.jti
        )
        try:
            await self.blacklist.add(claims.jti, ttl_ms)
        except RedisError as e:
            log.opt(exception=e).error("Failed to blacklist token")
            return

        log.info("Token revoked")
