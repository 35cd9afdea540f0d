"""
File: userhub/domains/identity/constants.py
Description: 身份领域常量定义 (错误码 + 成功提示)
Namespace: identity.*
"""

from starlette.status import HTTP_404_NOT_FOUND, HTTP_409_CONFLICT

from userhub.core.error_code import BaseErrorCode


class IdentityError(BaseErrorCode):
    """身份领域错误定义"""

    # 唯一约束冲突 (同一身份已被其他用户占用，或被并发请求抢先创建)
    IDENTITY_EXISTS = (
        HTTP_409_CONFLICT,
        "identity.identity_exists",
        "该身份已被注册，请直接登录",
    )

    IDENTITY_NOT_FOUND = (
        HTTP_404_NOT_FOUND,
        "identity.identity_not_found",
        "登录身份不存在",
    )

    # 每种登录方式每个用户只绑定一个
    TYPE_ALREADY_BOUND = (
        HTTP_409_CONFLICT,
        "identity.type_already_bound",
        "已绑定该类型的登录方式，请先解绑",
    )

    # 解绑后用户将无法登录
    LAST_IDENTITY = (
        HTTP_409_CONFLICT,
        "identity.last_identity",
        "至少保留一种登录方式",
    )


class IdentityMsg:
    BIND_SUCCESS = "绑定成功"
    UNBIND_SUCCESS = "解绑成功"
    PASSWORD_CHANGED = "密码修改成功"
