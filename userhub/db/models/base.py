"""
File: userhub/db/models/base.py
Description: ORM 模型基类与组件

1. Base: 声明式基类 + 约束命名约定
2. TimestampMixin: created_at / updated_at (UTC)
3. SoftDeleteMixin: is_deleted / deleted_at (仅用户主表使用)
4. UUIDModel: UUID v7 主键 + 时间戳，身份相关三张表的共同基类

主键使用通用 Uuid 类型：PostgreSQL 下映射为原生 UUID，其他方言 (测试用 SQLite) 下映射为 CHAR(32)。

Created: 2026-03-02
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, MetaData, Uuid, func, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from uuid6 import uuid7

# 约束命名约定 (Alembic autogenerate 依赖稳定的约束名)
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class TimestampMixin:
    """时间戳混入类，统一存储 UTC (TIMESTAMPTZ)。"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
        comment="创建时间 (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
        comment="更新时间 (UTC)",
    )


class SoftDeleteMixin:
    """
    软删除混入类。
    已软删除的用户视为不可登录，其身份与档案保留。
    """

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=text("false"),
        nullable=False,
        comment="是否软删除",
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None, nullable=True, comment="删除时间 (UTC)"
    )


class UUIDModel(Base, TimestampMixin):
    """UUID v7 主键 + 时间戳的标准业务模型基类"""

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid7, comment="主键 (UUID v7)"
    )
