"""
File: userhub/core/error_code.py
Description: 全局错误码基类与系统级错误定义

定义结构 Tuple(http_status, code, message):
1. http_status: HTTP 响应状态码 (4xx/5xx)
2. code: 字符串业务码 (格式: domain.reason)
3. message: 默认的人类可读错误消息

各业务领域在自己的 constants.py 中继承 BaseErrorCode 定义领域错误。

Created: 2026-03-02
"""

from enum import Enum

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)


class BaseErrorCode(Enum):
    """
    错误码枚举基类

    Value Tuple Definition:
    (http_status, code, msg)
    """

    @property
    def http_status(self) -> int:
        """获取映射的 HTTP 状态码"""
        return self.value[0]

    @property
    def code(self) -> str:
        """获取业务错误标识 (domain.reason)"""
        return self.value[1]

    @property
    def msg(self) -> str:
        """获取默认错误描述信息"""
        return self.value[2]


class SystemErrorCode(BaseErrorCode):
    """
    系统通用错误定义 (System Domain)
    包含: 参数校验、认证基础、基础设施故障
    """

    # HTTP 400: 客户端参数错误 (Pydantic 校验会自动映射到这里)
    INVALID_PARAMS = (HTTP_400_BAD_REQUEST, "system.invalid_params", "参数校验失败")

    # HTTP 401: 身份认证失败
    UNAUTHORIZED = (HTTP_401_UNAUTHORIZED, "system.unauthorized", "身份认证失败")
    TOKEN_EXPIRED = (HTTP_401_UNAUTHORIZED, "system.token_expired", "令牌已过期")

    # HTTP 403: 权限不足
    FORBIDDEN = (HTTP_403_FORBIDDEN, "system.forbidden", "权限不足")

    # HTTP 500: 服务端故障 (对外不暴露细节)
    INTERNAL_ERROR = (
        HTTP_500_INTERNAL_SERVER_ERROR,
        "system.internal_error",
        "系统内部错误",
    )
    DB_ERROR = (HTTP_500_INTERNAL_SERVER_ERROR, "system.db_error", "数据库操作异常")
    CACHE_ERROR = (HTTP_500_INTERNAL_SERVER_ERROR, "system.cache_error", "缓存服务异常")
    DATA_INTEGRITY = (
        HTTP_500_INTERNAL_SERVER_ERROR,
        "system.data_integrity",
        "用户数据不完整",
    )

    # HTTP 502: 上游服务 (短信 / 第三方开放平台) 故障
    UPSTREAM_ERROR = (HTTP_502_BAD_GATEWAY, "system.upstream_error", "第三方服务调用失败")
