"""
File: userhub/domains/users/service.py
Description: 用户领域服务

1. get_detail: 用户详情 (主体 + 档案 + 身份类型)
2. update_profile: 更新展示资料
3. list_users: 管理员分页查询用户 + 档案
4. set_status / update_user: 管理员拉黑 / 解封、调整角色
5. soft_delete_user: 管理员软删除用户
6. list_user_identities / detach_user_identity: 管理员查看 / 解绑用户的登录方式

拉黑或软删除后已签发的 Access Token 在自然过期前仍可使用，
Refresh Token 旋转与重新登录都会被状态闸门拦截。
软删除只标记用户主表，身份与档案保留：身份标识继续占用，不可被他人重新注册。

Created: 2026-03-02
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from userhub.core.error_code import SystemErrorCode
from userhub.core.exceptions import AppException
from userhub.db.models.enums import UserStatus
from userhub.db.models.user import User
from userhub.db.models.user_identity import UserIdentity
from userhub.db.models.user_profile import UserProfile
from userhub.domains.identity.service import IdentityResolver
from userhub.domains.users.constants import UserError
from userhub.domains.users.repository import UserQueryRepository
from userhub.domains.users.schemas import (
    ProfileRead,
    ProfileUpdate,
    UserAdminUpdate,
    UserDetailRead,
    UserListItem,
    UserListRequest,
    UserListResponse,
)


class UserService:
    def __init__(self, resolver: IdentityResolver):
        self.resolver = resolver
        self.session = resolver.session
        self.query_repo = UserQueryRepository(User, resolver.session)

    async def _get_user(self, user_id: UUID) -> User:
        user = await self.resolver.user_repo.get(user_id, fresh=True)
        if user is None or user.is_deleted:
            raise AppException(UserError.USER_NOT_FOUND)
        return user

    async def _update_user(
        self, user: User, data: dict[str, Any], *, action: str
    ) -> User:
        try:
            user = await self.resolver.user_repo.update(user, data)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.bind(user_id=str(user.id), action=action).opt(exception=e).error(
                "User update failed"
            )
            raise AppException(SystemErrorCode.DB_ERROR) from e
        return user

    # --------------------------------------------------------------------------
    # 详情 / 资料
    # --------------------------------------------------------------------------

    async def get_detail(self, user_id: UUID) -> UserDetailRead:
        user = await self._get_user(user_id)
        profile = await self.resolver.get_profile(user_id)
        identity_types = await self.resolver.list_identity_types(user_id)

        return UserDetailRead(
            id=user.id,
            role=user.role,
            status=user.status,
            created_at=user.created_at,
            profile=ProfileRead.model_validate(profile),
            identity_types=identity_types,
        )

    async def update_profile(self, user_id: UUID, obj_in: ProfileUpdate) -> UserProfile:
        await self._get_user(user_id)
        profile = await self.resolver.get_profile(user_id)

        try:
            profile = await self.resolver.profile_repo.update(
                profile, obj_in.to_update_dict()
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.bind(user_id=str(user_id)).opt(exception=e).error(
                "Profile update failed"
            )
            raise AppException(SystemErrorCode.DB_ERROR) from e

        logger.bind(operation="users.update_profile", user_id=str(user_id)).info(
            "Profile updated"
        )
        return profile

    # --------------------------------------------------------------------------
    # 管理员
    # --------------------------------------------------------------------------

    async def list_users(self, req: UserListRequest) -> UserListResponse:
        try:
            rows, total = await self.query_repo.list_with_profile(req)
        except SQLAlchemyError as e:
            logger.bind(operation="users.list").opt(exception=e).error(
                "User list query failed"
            )
            raise AppException(SystemErrorCode.DB_ERROR) from e

        items = [
            UserListItem(
                id=user.id,
                role=user.role,
                status=user.status,
                is_deleted=user.is_deleted,
                created_at=user.created_at,
                profile=ProfileRead.model_validate(profile) if profile else None,
            )
            for user, profile in rows
        ]
        return UserListResponse(
            items=items, total=total, page=req.page, page_size=req.page_size
        )

    async def set_status(
        self, user_id: UUID, status: UserStatus, *, operator_id: UUID
    ) -> User:
        user = await self._get_user(user_id)
        user = await self._update_user(user, {"status": status.value}, action="status")

        logger.bind(
            operation="users.set_status",
            user_id=str(user_id),
            status=status.value,
            operator_id=str(operator_id),
        ).info("User status changed")
        return user

    async def update_user(
        self, user_id: UUID, obj_in: UserAdminUpdate, *, operator_id: UUID
    ) -> User:
        user = await self._get_user(user_id)
        data = obj_in.to_update_dict()
        if not data:
            return user

        user = await self._update_user(user, data, action="update")
        logger.bind(
            operation="users.update",
            user_id=str(user_id),
            operator_id=str(operator_id),
            **data,
        ).info("User updated")
        return user

    async def soft_delete_user(self, user_id: UUID, *, operator_id: UUID) -> None:
        if user_id == operator_id:
            raise AppException(UserError.CANNOT_DELETE_SELF)

        user = await self._get_user(user_id)
        await self._update_user(
            user,
            {"is_deleted": True, "deleted_at": datetime.now(UTC)},
            action="soft_delete",
        )

        logger.bind(
            operation="users.soft_delete",
            user_id=str(user_id),
            operator_id=str(operator_id),
        ).info("User soft deleted")

    async def list_user_identities(self, user_id: UUID) -> list[UserIdentity]:
        await self._get_user(user_id)
        return await self.resolver.list_identities(user_id)

    async def detach_user_identity(
        self, user_id: UUID, identity_id: UUID, *, operator_id: UUID
    ) -> None:
        await self._get_user(user_id)
        await self.resolver.detach_identity(user_id, identity_id)
        logger.bind(
            operation="users.detach_identity",
            user_id=str(user_id),
            identity_id=str(identity_id),
            operator_id=str(operator_id),
        ).info("Identity detached by admin")
