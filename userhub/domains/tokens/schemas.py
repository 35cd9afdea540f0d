"""
File: userhub/domains/tokens/schemas.py
Description: 令牌领域数据结构

1. TokenClaims: JWT 载荷 (Access / Refresh 共用结构，Refresh 不携带 role / status)
2. TokenPair: 签发结果
"""

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from userhub.db.models.enums import Platform, UserRole, UserStatus
from userhub.domains.tokens.constants import TOKEN_TYPE_BEARER


class TokenClaims(BaseModel):
    """JWT Claims，签发后不可变"""

    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    role: UserRole | None = None
    status: UserStatus | None = None
    platform: Platform
    jti: str
    iss: str
    iat: int
    exp: int

    def remaining_ms(self, now: datetime | None = None) -> int:
        """距离过期的剩余毫秒数 (可能为负)"""
        now = now or datetime.now(UTC)
        return int((self.exp - now.timestamp()) * 1000)


class TokenPair(BaseModel):
    """双 Token 签发结果"""

    access_token: str = Field(..., description="访问令牌 (JWT, 15 分钟)")
    refresh_token: str = Field(..., description="刷新令牌 (JWT, 10 天)")
    token_type: str = Field(default=TOKEN_TYPE_BEARER, description="令牌类型")
    expires_in: int = Field(..., description="Access Token 有效期 (秒)")
