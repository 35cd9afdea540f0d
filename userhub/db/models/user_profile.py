"""
File: userhub/db/models/user_profile.py
Description: 用户展示资料模型 (1:1 User)

首次注册时与 User、UserIdentity 在同一事务中创建；
已存在的用户缺少档案属于数据完整性错误。

Created: 2026-03-02
"""

import uuid

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from userhub.db.models.base import UUIDModel
from userhub.db.models.enums import Gender


class UserProfile(UUIDModel):
    """用户档案表"""

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "user_profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,  # 1:1
        nullable=False,
        comment="关联用户ID",
    )

    nickname: Mapped[str] = mapped_column(
        String(64), default="", server_default="", nullable=False, comment="昵称"
    )

    avatar_url: Mapped[str | None] = mapped_column(
        String(512), nullable=True, comment="头像URL"
    )

    gender: Mapped[str] = mapped_column(
        String(10),
        default=Gender.UNKNOWN.value,
        server_default=Gender.UNKNOWN.value,
        nullable=False,
        comment="性别: unknown / male / female",
    )

    province: Mapped[str | None] = mapped_column(
        String(64), nullable=True, comment="省份"
    )

    city: Mapped[str | None] = mapped_column(String(64), nullable=True, comment="城市")
