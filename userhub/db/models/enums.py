"""
File: userhub/db/models/enums.py
Description: 领域封闭枚举 (存储为字符串列)

数据库列统一使用 String 存储枚举值，Pydantic Schema 直接复用这些 StrEnum 做校验，
新增取值只需扩展枚举，无需迁移数据库类型。

Created: 2026-03-02
"""

from enum import StrEnum


class IdentityType(StrEnum):
    """登录身份类型 (可扩展)"""

    ACCOUNT_PASSWORD = "account_password"
    WECHAT_MINI_PROGRAM = "wechat_mini_program"
    PHONE = "phone"


class UserRole(StrEnum):
    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"


class UserStatus(StrEnum):
    ACTIVE = "active"
    BLACKLISTED = "blacklisted"


class Gender(StrEnum):
    UNKNOWN = "unknown"
    MALE = "male"
    FEMALE = "female"


class Platform(StrEnum):
    """调用方平台 (签发令牌时写入 Claims 快照)"""

    WEB = "web"
    APP = "app"
    WECHAT = "wechat"
