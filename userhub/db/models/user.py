"""
File: userhub/db/models/user.py
Description: 用户主体模型

User 只承载身份无关的主体信息 (角色 + 状态)。
登录凭证存放在 user_identities，展示资料存放在 user_profiles，
三者通过 user_id 外键关联 (No-Relationship 模式，不定义 ORM relationship)。

Created: 2026-03-02
"""

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from userhub.db.models.base import SoftDeleteMixin, UUIDModel
from userhub.db.models.enums import UserRole, UserStatus


class User(UUIDModel, SoftDeleteMixin):
    """用户模型"""

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "users"

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'user', 'guest')",
            name="role_valid",
        ),
        CheckConstraint(
            "status IN ('active', 'blacklisted')",
            name="status_valid",
        ),
    )

    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.USER.value,
        server_default=UserRole.USER.value,
        nullable=False,
        comment="角色: admin / user / guest",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=UserStatus.ACTIVE.value,
        server_default=UserStatus.ACTIVE.value,
        nullable=False,
        index=True,
        comment="状态: active / blacklisted",
    )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE and not self.is_deleted
