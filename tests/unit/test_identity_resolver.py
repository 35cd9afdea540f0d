"""
File: tests/unit/test_identity_resolver.py
Description: 身份解析服务单元测试

1. 首次接触时原子创建 User + UserIdentity + UserProfile
2. 已存在身份直接返回所属用户
3. 唯一约束冲突 (含两个会话并发注册) / 中途失败 / 任务取消时整体回滚
4. 重新加载用户与状态闸门
5. 已有用户绑定 / 解绑登录方式、更新凭证

Created: 2026-03-02
"""

import asyncio
import uuid

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tests.utils import count_rows
from userhub.core.error_code import SystemErrorCode
from userhub.core.exceptions import AppException
from userhub.db.models.enums import IdentityType, UserRole, UserStatus
from userhub.db.models.user import User
from userhub.db.models.user_identity import UserIdentity
from userhub.db.models.user_profile import UserProfile
from userhub.domains.auth.constants import AuthError
from userhub.domains.identity.constants import IdentityError
from userhub.domains.identity.service import IdentityResolver
from userhub.domains.tokens.constants import TokenError

PHONE = "13800001111"


async def _row_counts(session: AsyncSession) -> tuple[int, int, int]:
    return (
        await count_rows(session, User),
        await count_rows(session, UserIdentity),
        await count_rows(session, UserProfile),
    )


@pytest.mark.asyncio
async def test_create_identity_owner_creates_three_rows(
    resolver: IdentityResolver,
) -> None:
    user_id = await resolver.create_identity_owner(
        IdentityType.ACCOUNT_PASSWORD, "alice", "hashed-value", nickname="alice"
    )

    user = await resolver.load_user(user_id)
    identity = await resolver.find_identity(IdentityType.ACCOUNT_PASSWORD, "alice")
    profile = await resolver.get_profile(user_id)

    assert user.role == UserRole.USER
    assert user.status == UserStatus.ACTIVE
    assert user.is_deleted is False
    assert identity is not None
    assert identity.user_id == user_id
    assert identity.credential == "hashed-value"
    assert profile.nickname == "alice"
    assert await _row_counts(resolver.session) == (1, 1, 1)


@pytest.mark.asyncio
async def test_create_identity_owner_defaults_nickname_to_identifier(
    resolver: IdentityResolver,
) -> None:
    user_id = await resolver.create_identity_owner(IdentityType.PHONE, "13800001111")

    profile = await resolver.get_profile(user_id)

    assert profile.nickname == "13800001111"


@pytest.mark.asyncio
async def test_resolve_or_create_reuses_existing_identity(
    resolver: IdentityResolver,
) -> None:
    first = await resolver.resolve_or_create(
        IdentityType.WECHAT_MINI_PROGRAM, "openid-1", nickname=""
    )
    second = await resolver.resolve_or_create(
        IdentityType.WECHAT_MINI_PROGRAM, "openid-1", nickname="ignored"
    )

    assert first == second
    assert await _row_counts(resolver.session) == (1, 1, 1)
    assert (await resolver.get_profile(first)).nickname == ""


@pytest.mark.asyncio
async def test_same_identifier_under_different_types_is_distinct(
    resolver: IdentityResolver,
) -> None:
    a = await resolver.resolve_or_create(IdentityType.PHONE, "13800001111")
    b = await resolver.resolve_or_create(IdentityType.ACCOUNT_PASSWORD, "13800001111")

    assert a != b
    assert await _row_counts(resolver.session) == (2, 2, 2)


@pytest.mark.asyncio
async def test_duplicate_identity_rolls_back_whole_registration(
    resolver: IdentityResolver,
) -> None:
    await resolver.create_identity_owner(IdentityType.PHONE, "13800001111")

    with pytest.raises(AppException) as exc_info:
        await resolver.create_identity_owner(IdentityType.PHONE, "13800001111")

    assert exc_info.value.error is IdentityError.IDENTITY_EXISTS
    assert exc_info.value.http_status == 409
    assert await _row_counts(resolver.session) == (1, 1, 1)


@pytest.mark.asyncio
async def test_failure_midway_leaves_no_partial_rows(
    resolver: IdentityResolver, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def broken_add(obj: UserProfile) -> UserProfile:
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(resolver.profile_repo, "add", broken_add)

    with pytest.raises(AppException) as exc_info:
        await resolver.create_identity_owner(IdentityType.PHONE, "13800001111")

    assert exc_info.value.error is SystemErrorCode.DB_ERROR
    assert await _row_counts(resolver.session) == (0, 0, 0)


@pytest.mark.asyncio
async def test_concurrent_first_registration_yields_one_user(
    db_engine: AsyncEngine,
) -> None:
    session_factory = async_sessionmaker(
        bind=db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )

    async with session_factory() as first_session, session_factory() as second_session:
        first = IdentityResolver(first_session)
        second = IdentityResolver(second_session)

        # 两个请求都在对方提交前完成查重
        assert await first.find_identity(IdentityType.PHONE, PHONE) is None
        assert await second.find_identity(IdentityType.PHONE, PHONE) is None

        winner = await first.create_identity_owner(IdentityType.PHONE, PHONE)
        with pytest.raises(AppException) as exc_info:
            await second.create_identity_owner(IdentityType.PHONE, PHONE)

    assert exc_info.value.error is IdentityError.IDENTITY_EXISTS

    async with session_factory() as check_session:
        assert await _row_counts(check_session) == (1, 1, 1)
        identity = await IdentityResolver(check_session).find_identity(
            IdentityType.PHONE, PHONE
        )
        assert identity is not None
        assert identity.user_id == winner


@pytest.mark.asyncio
async def test_cancelled_registration_leaves_no_rows(
    resolver: IdentityResolver, monkeypatch: pytest.MonkeyPatch
) -> None:
    reached = asyncio.Event()

    async def stalled_add(obj: UserProfile) -> UserProfile:
        reached.set()
        await asyncio.Event().wait()
        return obj

    monkeypatch.setattr(resolver.profile_repo, "add", stalled_add)

    task = asyncio.create_task(
        resolver.create_identity_owner(IdentityType.PHONE, PHONE)
    )
    # User 与 UserIdentity 已 flush，卡在创建档案
    await reached.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert await _row_counts(resolver.session) == (0, 0, 0)


@pytest.mark.asyncio
async def test_load_user_missing_row_is_integrity_error(
    resolver: IdentityResolver,
) -> None:
    with pytest.raises(AppException) as exc_info:
        await resolver.load_user(uuid.uuid4())

    assert exc_info.value.error is SystemErrorCode.DATA_INTEGRITY
    assert exc_info.value.http_status == 500


@pytest.mark.asyncio
async def test_load_user_reads_committed_state(resolver: IdentityResolver) -> None:
    user_id = await resolver.create_identity_owner(IdentityType.PHONE, "13800001111")
    user = await resolver.load_user(user_id)

    user.status = UserStatus.BLACKLISTED.value
    await resolver.session.commit()

    reloaded = await resolver.load_user(user_id)
    assert reloaded.status == UserStatus.BLACKLISTED


@pytest.mark.asyncio
async def test_ensure_active_gate(resolver: IdentityResolver) -> None:
    user_id = await resolver.create_identity_owner(IdentityType.PHONE, "13800001111")
    user = await resolver.load_user(user_id)

    resolver.ensure_active(user)

    user.status = UserStatus.BLACKLISTED.value
    with pytest.raises(AppException) as exc_info:
        resolver.ensure_active(user)
    assert exc_info.value.error is AuthError.ACCOUNT_LOCKED

    user.status = UserStatus.ACTIVE.value
    user.is_deleted = True
    with pytest.raises(AppException) as exc_info:
        resolver.ensure_active(user, error=TokenError.USER_INACTIVE)
    assert exc_info.value.error is TokenError.USER_INACTIVE


@pytest.mark.asyncio
async def test_list_identity_types(resolver: IdentityResolver) -> None:
    user_id = await resolver.create_identity_owner(IdentityType.PHONE, "13800001111")

    assert await resolver.list_identity_types(user_id) == ["phone"]
    assert await resolver.list_identity_types(uuid.uuid4()) == []


# ------------------------------------------------------------------------------
# 绑定 / 解绑 / 更新凭证
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_attach_identity_to_existing_user(resolver: IdentityResolver) -> None:
    user_id = await resolver.create_identity_owner(IdentityType.PHONE, PHONE)

    identity = await resolver.attach_identity(
        user_id, IdentityType.WECHAT_MINI_PROGRAM, "openid-1"
    )

    assert identity.user_id == user_id
    assert identity.credential == ""
    assert await resolver.list_identity_types(user_id) == [
        "phone",
        "wechat_mini_program",
    ]
    # 只新增身份，不新建用户与档案
    assert await _row_counts(resolver.session) == (1, 2, 1)


@pytest.mark.asyncio
async def test_attach_same_type_twice_is_rejected(resolver: IdentityResolver) -> None:
    user_id = await resolver.create_identity_owner(IdentityType.PHONE, PHONE)

    with pytest.raises(AppException) as exc_info:
        await resolver.attach_identity(user_id, IdentityType.PHONE, "13900002222")

    assert exc_info.value.error is IdentityError.TYPE_ALREADY_BOUND
    assert await _row_counts(resolver.session) == (1, 1, 1)


@pytest.mark.asyncio
async def test_attach_identity_owned_by_another_user(
    resolver: IdentityResolver,
) -> None:
    await resolver.create_identity_owner(IdentityType.WECHAT_MINI_PROGRAM, "openid-1")
    other = await resolver.create_identity_owner(IdentityType.PHONE, PHONE)

    with pytest.raises(AppException) as exc_info:
        await resolver.attach_identity(
            other, IdentityType.WECHAT_MINI_PROGRAM, "openid-1"
        )

    assert exc_info.value.error is IdentityError.IDENTITY_EXISTS
    assert await _row_counts(resolver.session) == (2, 2, 2)
    assert await resolver.list_identity_types(other) == ["phone"]


@pytest.mark.asyncio
async def test_detach_identity(resolver: IdentityResolver) -> None:
    user_id = await resolver.create_identity_owner(IdentityType.PHONE, PHONE)
    wechat = await resolver.attach_identity(
        user_id, IdentityType.WECHAT_MINI_PROGRAM, "openid-1"
    )

    await resolver.detach_identity(user_id, wechat.id)

    assert await resolver.list_identity_types(user_id) == ["phone"]
    assert (
        await resolver.find_identity(IdentityType.WECHAT_MINI_PROGRAM, "openid-1")
        is None
    )


@pytest.mark.asyncio
async def test_detach_last_identity_is_rejected(resolver: IdentityResolver) -> None:
    user_id = await resolver.create_identity_owner(IdentityType.PHONE, PHONE)
    identity = await resolver.find_identity(IdentityType.PHONE, PHONE)
    assert identity is not None

    with pytest.raises(AppException) as exc_info:
        await resolver.detach_identity(user_id, identity.id)

    assert exc_info.value.error is IdentityError.LAST_IDENTITY
    assert await resolver.list_identity_types(user_id) == ["phone"]


@pytest.mark.asyncio
async def test_detach_identity_of_another_user_is_not_found(
    resolver: IdentityResolver,
) -> None:
    owner = await resolver.create_identity_owner(IdentityType.PHONE, PHONE)
    await resolver.attach_identity(owner, IdentityType.WECHAT_MINI_PROGRAM, "openid-1")
    intruder = await resolver.create_identity_owner(IdentityType.PHONE, "13900002222")
    target = await resolver.find_identity(IdentityType.PHONE, PHONE)
    assert target is not None

    for identity_id in (target.id, uuid.uuid4()):
        with pytest.raises(AppException) as exc_info:
            await resolver.detach_identity(intruder, identity_id)
        assert exc_info.value.error is IdentityError.IDENTITY_NOT_FOUND

    assert await resolver.list_identity_types(owner) == [
        "phone",
        "wechat_mini_program",
    ]


@pytest.mark.asyncio
async def test_replace_credential(resolver: IdentityResolver) -> None:
    user_id = await resolver.create_identity_owner(
        IdentityType.ACCOUNT_PASSWORD, "alice", "old-hash"
    )
    identity = await resolver.find_user_identity(user_id, IdentityType.ACCOUNT_PASSWORD)
    assert identity is not None

    await resolver.replace_credential(identity, "new-hash")

    reloaded = await resolver.find_identity(IdentityType.ACCOUNT_PASSWORD, "alice")
    assert reloaded is not None
    assert reloaded.credential == "new-hash"
