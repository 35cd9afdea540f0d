"""
File: userhub/domains/identity/service.py
Description: 身份解析服务 (IdentityResolver)

本模块负责：
1. 根据 (identity_type, identifier) 找到身份所属用户
2. 首次接触时在同一事务中原子创建 User + UserIdentity + UserProfile
3. 从数据库重新加载用户 (角色 / 状态以持久化数据为准)
4. 状态闸门: 非 active 或已软删除的用户禁止签发令牌
5. 已有用户绑定 / 解绑登录方式、更新凭证

并发说明：
(identity_type, identifier) 唯一约束是跨请求唯一的防重保障。
并发注册中落败的一方在 flush/commit 时收到 IntegrityError，整个事务回滚，
对外表现为 identity.identity_exists，不做重试。

Created: 2026-03-02
"""

import asyncio
import uuid

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from uuid6 import uuid7

from userhub.core.error_code import BaseErrorCode, SystemErrorCode
from userhub.core.exceptions import AppException
from userhub.db.models.enums import IdentityType, UserRole, UserStatus
from userhub.db.models.user import User
from userhub.db.models.user_identity import UserIdentity
from userhub.db.models.user_profile import UserProfile
from userhub.domains.auth.constants import AuthError
from userhub.domains.identity.constants import IdentityError
from userhub.domains.identity.repository import (
    UserIdentityRepository,
    UserProfileRepository,
    UserRepository,
)
from userhub.utils.masking import mask_identifier


class IdentityResolver:
    """身份解析与首次注册服务"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(User, session)
        self.identity_repo = UserIdentityRepository(UserIdentity, session)
        self.profile_repo = UserProfileRepository(UserProfile, session)

    # --------------------------------------------------------------------------
    # 查找 / 创建
    # --------------------------------------------------------------------------

    async def find_identity(
        self, identity_type: IdentityType, identifier: str
    ) -> UserIdentity | None:
        try:
            return await self.identity_repo.get_by_identifier(identity_type, identifier)
        except SQLAlchemyError as e:
            logger.bind(identity_type=identity_type.value).opt(exception=e).error(
                "Identity lookup failed"
            )
            raise AppException(SystemErrorCode.DB_ERROR) from e

    async def resolve_or_create(
        self,
        identity_type: IdentityType,
        identifier: str,
        credential: str = "",
        *,
        nickname: str | None = None,
    ) -> uuid.UUID:
        """
        返回身份所属用户 ID；身份不存在时创建新用户。

        Raises:
            AppException(IdentityError.IDENTITY_EXISTS): 并发注册冲突
            AppException(SystemErrorCode.DB_ERROR): 其他数据库异常
        """
        identity = await self.find_identity(identity_type, identifier)
        if identity is not None:
            return identity.user_id

        return await self.create_identity_owner(
            identity_type, identifier, credential, nickname=nickname
        )

    async def create_identity_owner(
        self,
        identity_type: IdentityType,
        identifier: str,
        credential: str = "",
        *,
        nickname: str | None = None,
    ) -> uuid.UUID:
        """在单个事务中创建 User + UserIdentity + UserProfile，返回新用户 ID。"""
        user_id = uuid7()
        log = logger.bind(
            operation="identity.create",
            identity_type=identity_type.value,
            identifier=mask_identifier(identifier),
            user_id=str(user_id),
        )

        try:
            await self.user_repo.add(
                User(
                    id=user_id,
                    role=UserRole.USER.value,
                    status=UserStatus.ACTIVE.value,
                )
            )
            await self.identity_repo.add(
                UserIdentity(
                    user_id=user_id,
                    identity_type=identity_type.value,
                    identifier=identifier,
                    credential=credential,
                )
            )
            await self.profile_repo.add(
                UserProfile(
                    user_id=user_id,
                    nickname=identifier if nickname is None else nickname,
                )
            )
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            log.warning("Identity already registered by a concurrent request")
            raise AppException(IdentityError.IDENTITY_EXISTS) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            log.opt(exception=e).error("Identity registration transaction failed")
            raise AppException(SystemErrorCode.DB_ERROR) from e
        except asyncio.CancelledError:
            await self.session.rollback()
            raise

        log.info("New user registered")
        return user_id

    # --------------------------------------------------------------------------
    # 加载 / 状态闸门
    # --------------------------------------------------------------------------

    async def load_user(self, user_id: uuid.UUID) -> User:
        """
        从数据库重新读取用户 (绕过 Session 缓存)。
        身份已解析但用户行不存在属于数据完整性错误。
        """
        try:
            user = await self.user_repo.get(user_id, fresh=True)
        except SQLAlchemyError as e:
            logger.bind(user_id=str(user_id)).opt(exception=e).error("Load user failed")
            raise AppException(SystemErrorCode.DB_ERROR) from e

        if user is None:
            logger.bind(user_id=str(user_id)).error("Identity owner row is missing")
            raise AppException(SystemErrorCode.DATA_INTEGRITY)
        return user

    @staticmethod
    def ensure_active(
        user: User, error: BaseErrorCode = AuthError.ACCOUNT_LOCKED
    ) -> None:
        """状态闸门: 非 active 或已软删除的用户拒绝通过。"""
        if not user.is_active:
            logger.bind(user_id=str(user.id), status=user.status).warning(
                "Inactive user rejected"
            )
            raise AppException(error)

    # --------------------------------------------------------------------------
    # 读模型
    # --------------------------------------------------------------------------

    async def list_identity_types(self, user_id: uuid.UUID) -> list[str]:
        return await self.identity_repo.list_types_by_user(user_id)

    async def get_profile(self, user_id: uuid.UUID) -> UserProfile:
        profile = await self.profile_repo.get_by_user_id(user_id)
        if profile is None:
            logger.bind(user_id=str(user_id)).error("User profile is missing")
            raise AppException(SystemErrorCode.DATA_INTEGRITY)
        return profile

    async def list_identities(self, user_id: uuid.UUID) -> list[UserIdentity]:
        return await self.identity_repo.list_by_user(user_id)

    async def find_user_identity(
        self, user_id: uuid.UUID, identity_type: IdentityType
    ) -> UserIdentity | None:
        return await self.identity_repo.get_by_user_and_type(user_id, identity_type)

    # --------------------------------------------------------------------------
    # 绑定 / 解绑 / 更新凭证 (已有用户)
    # --------------------------------------------------------------------------

    async def attach_identity(
        self,
        user_id: uuid.UUID,
        identity_type: IdentityType,
        identifier: str,
        credential: str = "",
    ) -> UserIdentity:
        """
        为已有用户追加一种登录方式。

        Raises:
            AppException(IdentityError.TYPE_ALREADY_BOUND): 该用户已绑定同类型身份
            AppException(IdentityError.IDENTITY_EXISTS): 身份已归属其他用户 (含并发绑定)
            AppException(SystemErrorCode.DB_ERROR): 其他数据库异常
        """
        log = logger.bind(
            operation="identity.attach",
            identity_type=identity_type.value,
            identifier=mask_identifier(identifier),
            user_id=str(user_id),
        )

        if await self.identity_repo.get_by_user_and_type(user_id, identity_type):
            log.warning("Identity type already bound")
            raise AppException(IdentityError.TYPE_ALREADY_BOUND)

        try:
            identity = await self.identity_repo.add(
                UserIdentity(
                    user_id=user_id,
                    identity_type=identity_type.value,
                    identifier=identifier,
                    credential=credential,
                )
            )
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            log.warning("Identity already owned by another user")
            raise AppException(IdentityError.IDENTITY_EXISTS) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            log.opt(exception=e).error("Identity attach failed")
            raise AppException(SystemErrorCode.DB_ERROR) from e

        log.info("Identity attached")
        return identity

    async def detach_identity(self, user_id: uuid.UUID, identity_id: uuid.UUID) -> None:
        """
        解绑用户的一种登录方式 (物理删除身份行)。

        身份不存在或不属于该用户一律视为不存在；最后一种登录方式不允许解绑。
        """
        log = logger.bind(
            operation="identity.detach",
            user_id=str(user_id),
            identity_id=str(identity_id),
        )

        identity = await self.identity_repo.get(identity_id)
        if identity is None or identity.user_id != user_id:
            raise AppException(IdentityError.IDENTITY_NOT_FOUND)

        if len(await self.identity_repo.list_types_by_user(user_id)) <= 1:
            log.warning("Refused to detach the last identity")
            raise AppException(IdentityError.LAST_IDENTITY)

        identity_type = identity.identity_type
        try:
            await self.identity_repo.delete(identity)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            log.opt(exception=e).error("Identity detach failed")
            raise AppException(SystemErrorCode.DB_ERROR) from e

        log.bind(identity_type=identity_type).info("Identity detached")

    async def replace_credential(
        self, identity: UserIdentity, credential: str
    ) -> UserIdentity:
        try:
            identity = await self.identity_repo.update(
                identity, {"credential": credential}
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.bind(identity_id=str(identity.id)).opt(exception=e).error(
                "Credential update failed"
            )
            raise AppException(SystemErrorCode.DB_ERROR) from e
        return identity
