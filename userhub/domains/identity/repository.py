"""
File: userhub/domains/identity/repository.py
Description: 身份领域仓储层

1. UserRepository: 用户主体
2. UserIdentityRepository: 登录身份 (按 identity_type + identifier 精确查找)
3. UserProfileRepository: 展示资料 (按 user_id 查找)

Repository 只 flush 不 commit。

Created: 2026-03-02
"""

import uuid

from sqlalchemy import select

from userhub.db.models.enums import IdentityType
from userhub.db.models.user import User
from userhub.db.models.user_identity import UserIdentity
from userhub.db.models.user_profile import UserProfile
from userhub.db.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    pass


class UserIdentityRepository(BaseRepository[UserIdentity]):
    """用户身份仓储"""

    async def get_by_identifier(
        self, identity_type: IdentityType, identifier: str
    ) -> UserIdentity | None:
        """根据 (identity_type, identifier) 查询身份，唯一约束保证至多一条。"""
        stmt = select(UserIdentity).where(
            UserIdentity.identity_type == identity_type.value,
            UserIdentity.identifier == identifier,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_types_by_user(self, user_id: uuid.UUID) -> list[str]:
        stmt = (
            select(UserIdentity.identity_type)
            .where(UserIdentity.user_id == user_id)
            .order_by(UserIdentity.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_user(self, user_id: uuid.UUID) -> list[UserIdentity]:
        stmt = (
            select(UserIdentity)
            .where(UserIdentity.user_id == user_id)
            .order_by(UserIdentity.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_user_and_type(
        self, user_id: uuid.UUID, identity_type: IdentityType
    ) -> UserIdentity | None:
        stmt = select(UserIdentity).where(
            UserIdentity.user_id == user_id,
            UserIdentity.identity_type == identity_type.value,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()


class UserProfileRepository(BaseRepository[UserProfile]):
    """用户档案仓储"""

    async def get_by_user_id(self, user_id: uuid.UUID) -> UserProfile | None:
        stmt = select(UserProfile).where(UserProfile.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
