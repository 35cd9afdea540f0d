"""
File: userhub/db/models/user_identity.py
Description: 用户登录身份模型

一个 User 可以绑定多个登录身份 (账号密码 / 手机号 / 微信小程序 openid)。

约束：
1. (identity_type, identifier) 全局唯一，是注册并发下唯一的防重保障
2. user_id 外键级联删除，物理删除用户时身份随之清理
3. credential 仅账号密码类型存储 Argon2id 哈希，其他类型为空串

Created: 2026-03-02
"""

import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from userhub.db.models.base import UUIDModel


class UserIdentity(UUIDModel):
    """用户身份表 (N:1 User)"""

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "user_identities"

    __table_args__ = (UniqueConstraint("identity_type", "identifier"),)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="关联用户ID",
    )

    identity_type: Mapped[str] = mapped_column(
        String(32), nullable=False, comment="身份类型"
    )

    # 账号名 / 手机号 / openid
    identifier: Mapped[str] = mapped_column(
        String(128), nullable=False, comment="身份标识"
    )

    credential: Mapped[str] = mapped_column(
        String(255), default="", server_default="", nullable=False, comment="凭证"
    )
