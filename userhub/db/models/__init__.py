"""
File: userhub/db/models/__init__.py
Description: ORM 模型注册表

新增 Model 文件必须在此导入，否则 Alembic autogenerate 无法检测到新表。
"""

from userhub.db.models.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDModel,
)
from userhub.db.models.user import User
from userhub.db.models.user_identity import UserIdentity
from userhub.db.models.user_profile import UserProfile

__all__ = [
    "Base",
    "UUIDModel",
    "TimestampMixin",
    "SoftDeleteMixin",
    "User",
    "UserIdentity",
    "UserProfile",
]
