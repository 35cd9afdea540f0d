"""
File: userhub/domains/users/constants.py
Description: 用户领域常量定义 (错误码 + 成功提示)
Namespace: users.*
"""

from starlette.status import HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND

from userhub.core.error_code import BaseErrorCode


class UserError(BaseErrorCode):
    """用户领域错误码"""

    # 已软删除的用户同样视为不存在
    USER_NOT_FOUND = (HTTP_404_NOT_FOUND, "users.user_not_found", "用户不存在")

    CANNOT_DELETE_SELF = (
        HTTP_400_BAD_REQUEST,
        "users.cannot_delete_self",
        "不能删除当前登录的管理员账号",
    )


class UserMsg:
    PROFILE_UPDATED = "资料更新成功"
    STATUS_UPDATED = "用户状态已更新"
    USER_UPDATED = "用户信息已更新"
    USER_DELETED = "用户已删除"
