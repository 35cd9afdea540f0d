"""
File: userhub/domains/tokens/constants.py
Description: 令牌领域常量 (错误码 + Redis 键规则)
Namespace: token.*
"""

from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from userhub.core.error_code import BaseErrorCode


class TokenError(BaseErrorCode):
    """令牌领域错误定义"""

    INVALID = (HTTP_401_UNAUTHORIZED, "token.invalid", "无效的刷新令牌")
    REVOKED = (HTTP_401_UNAUTHORIZED, "token.revoked", "刷新令牌已失效")
    USER_INACTIVE = (
        HTTP_403_FORBIDDEN,
        "token.user_inactive",
        "用户状态异常，无法刷新令牌",
    )


# 黑名单键: "{TOKEN_BLACKLIST_PREFIX}:jti:{jti}"
BLACKLIST_KEY_SEGMENT = "jti"
BLACKLIST_VALUE = "blacklisted"

TOKEN_TYPE_BEARER = "bearer"
