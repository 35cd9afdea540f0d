"""
File: userhub/api/deps.py
Description: 全局依赖注入定义

本模块负责：
1. 数据库会话 (get_db / DBSession) 与 Redis 客户端 (RedisClient)
2. 调用平台 (X-Platform 请求头 -> Platform)
3. Bearer Token 提取与 Access Token 无状态校验 (CurrentClaims)
4. 管理员权限 (AdminClaims)

Created: 2026-03-02
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from userhub.core.error_code import SystemErrorCode
from userhub.core.exceptions import AppException
from userhub.core.redis import get_redis
from userhub.core.security import TokenExpiredError, TokenInvalidError
from userhub.db.models.enums import Platform, UserRole
from userhub.db.session import AsyncSessionLocal
from userhub.domains.tokens.schemas import TokenClaims
from userhub.domains.tokens.service import TokenService

# ------------------------------------------------------------------------------
# 1. Infrastructure Dependencies
# ------------------------------------------------------------------------------


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """请求结束时自动关闭 session (未提交的事务随之回滚)"""
    async with AsyncSessionLocal() as session:
        yield session


DBSession = Annotated[AsyncSession, Depends(get_db)]
RedisClient = Annotated[Redis, Depends(get_redis)]


# ------------------------------------------------------------------------------
# 2. Platform
# ------------------------------------------------------------------------------


async def get_platform(
    x_platform: Annotated[Platform, Header(alias="X-Platform")] = Platform.APP,
) -> Platform:
    """未携带 X-Platform 时按 App 处理；非法取值由参数校验返回 400"""
    return x_platform


PlatformDep = Annotated[Platform, Depends(get_platform)]


# ------------------------------------------------------------------------------
# 3. Authentication
# ------------------------------------------------------------------------------


async def get_bearer_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """提取 Authorization: Bearer <token>，缺失或格式不符返回 None"""
    if not authorization:
        return None
    scheme, _, param = authorization.partition(" ")
    if scheme.lower() != "bearer" or not param.strip():
        return None
    return param.strip()


BearerToken = Annotated[str | None, Depends(get_bearer_token)]


async def get_current_claims(token: BearerToken) -> TokenClaims:
    """
    校验 Access Token 并返回 Claims。
    Access Token 为短效无状态令牌，此处不查黑名单，也不查库。
    """
    if token is None:
        raise AppException(SystemErrorCode.UNAUTHORIZED, message="缺少访问令牌")

    try:
        return TokenService.parse_access_token(token)
    except TokenExpiredError:
        raise AppException(SystemErrorCode.TOKEN_EXPIRED) from None
    except TokenInvalidError:
        raise AppException(SystemErrorCode.UNAUTHORIZED, message="无效的访问令牌") from None


CurrentClaims = Annotated[TokenClaims, Depends(get_current_claims)]


async def get_admin_claims(claims: CurrentClaims) -> TokenClaims:
    if claims.role != UserRole.ADMIN:
        raise AppException(SystemErrorCode.FORBIDDEN)
    return claims


AdminClaims = Annotated[TokenClaims, Depends(get_admin_claims)]
