"""
File: userhub/domains/auth/constants.py
Description: 认证领域常量定义 (错误码 + 成功提示 + 校验规则)
Namespace: auth.*

1. Error 定义: 继承 BaseErrorCode，包含 (HTTP状态, 业务码, 默认文案)
2. Msg 定义: 纯字符串常量，用于 Router 返回成功响应
3. 正则: 手机号 / 账号 / 密码规则，Schema 层统一复用

Created: 2026-03-02
"""

import re

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_409_CONFLICT,
)

from userhub.core.error_code import BaseErrorCode

# ==============================================================================
# 1. 错误码定义 (Error Codes)
# ==============================================================================


class AuthError(BaseErrorCode):
    """认证领域错误定义"""

    # 账号不存在与密码错误共用同一错误，防止账号枚举
    INVALID_CREDENTIALS = (
        HTTP_401_UNAUTHORIZED,
        "auth.invalid_credentials",
        "账号或密码错误",
    )

    # 验证码缺失 / 过期 / 不匹配 共用同一错误
    CAPTCHA_ERROR = (HTTP_401_UNAUTHORIZED, "auth.captcha_error", "验证码错误或已过期")

    ACCOUNT_LOCKED = (HTTP_403_FORBIDDEN, "auth.account_locked", "用户状态异常，无法登录")

    PASSWORD_MISMATCH = (
        HTTP_400_BAD_REQUEST,
        "auth.password_mismatch",
        "密码和确认密码不一致，请检查输入",
    )

    ACCOUNT_EXIST = (HTTP_409_CONFLICT, "auth.account_exist", "账号已存在，请直接登录")

    OLD_PASSWORD_INCORRECT = (
        HTTP_400_BAD_REQUEST,
        "auth.old_password_incorrect",
        "原密码错误",
    )

    WECHAT_AUTH_FAILED = (
        HTTP_401_UNAUTHORIZED,
        "auth.wechat_auth_failed",
        "微信登录凭证校验失败，请稍后重试",
    )

    MISSING_REFRESH_TOKEN = (
        HTTP_401_UNAUTHORIZED,
        "auth.missing_refresh_token",
        "缺少刷新令牌",
    )


# ==============================================================================
# 2. 成功提示语 (Success Messages)
# ==============================================================================


class AuthMsg:
    LOGIN_SUCCESS = "登录成功"
    REGISTER_SUCCESS = "注册成功"
    LOGOUT_SUCCESS = "已安全退出"
    REFRESH_SUCCESS = "令牌刷新成功"
    CAPTCHA_SENT = "验证码已发送"


# ==============================================================================
# 3. 校验规则 (Validation Patterns)
# ==============================================================================

# 中国大陆手机号
PHONE_PATTERN = re.compile(r"^1[3-9]\d{9}$")
PHONE_ERROR_MESSAGE = "手机号格式不正确"

# 账号: 字母、数字、下划线，1-20 位
ACCOUNT_PATTERN = re.compile(r"^[A-Za-z0-9_]{1,20}$")
ACCOUNT_ERROR_MESSAGE = "账号只能包含字母、数字和下划线，且长度不超过 20"

# 密码: 6-30 位，至少包含一个字母和一个数字
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 30
PASSWORD_ERROR_MESSAGE = "密码长度需为 6-30 位，且必须同时包含字母和数字"

CAPTCHA_LENGTH = 6
