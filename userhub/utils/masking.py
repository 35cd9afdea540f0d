"""
File: userhub/utils/masking.py
Description: 日志脱敏工具

身份认证场景下的日志里会出现手机号、账号、令牌、验证码和 openid。
本模块保证这些值不会以明文落入日志：
1. 针对性脱敏: 手机号、账号、openid 等登录标识
2. 递归脱敏: 深度遍历字典/列表，命中敏感 Key 时整体掩盖

Created: 2026-03-02
"""

from typing import Any

# ==============================================================================
# 1. 敏感字段黑名单 (大小写不敏感)
# ==============================================================================
SENSITIVE_KEYS = {
    "password",
    "confirm_password",
    "credential",
    "secret",
    "token",
    "access_token",
    "refresh_token",
    "captcha",
    "captcha_code",
    "js_code",
    "session_key",
}

# ==============================================================================
# 2. 基础脱敏函数
# ==============================================================================


def mask_phone(phone: str | None) -> str:
    """
    手机号脱敏。
    规则: 保留前3位和后4位，中间用 * 替换。
    示例: 13800001111 -> 138****1111
    """
    if not phone or len(phone) < 7:
        return "******"
    return f"{phone[:3]}****{phone[-4:]}"


def mask_identifier(identifier: str | None) -> str:
    """
    通用登录标识脱敏 (账号名 / openid)。
    规则: 保留首尾各 2 位；长度不足 5 位时只保留首位。
    """
    if not identifier:
        return "******"
    if len(identifier) < 5:
        return f"{identifier[0]}***"
    return f"{identifier[:2]}***{identifier[-2:]}"


def mask_secret(value: Any) -> str:
    """密码、令牌、验证码等机密信息完全掩盖。"""
    if value is None:
        return ""
    return "******"


# ==============================================================================
# 3. 递归脱敏工具
# ==============================================================================


def mask_sensitive_data(data: Any) -> Any:
    """
    递归遍历数据结构（字典、列表），对敏感字段进行脱敏。

    返回新的副本，不修改原数据。
    """
    if isinstance(data, dict):
        new_data = {}
        for k, v in data.items():
            if isinstance(k, str) and k.lower() in SENSITIVE_KEYS:
                new_data[k] = mask_secret(v)
            else:
                new_data[k] = mask_sensitive_data(v)
        return new_data

    if isinstance(data, list):
        return [mask_sensitive_data(item) for item in data]

    return data
