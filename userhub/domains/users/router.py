"""
File: userhub/domains/users/router.py
Description: 用户领域 HTTP 路由层

当前用户 (需登录):
1. GET /me: 当前用户详情
2. PATCH /me/profile: 更新我的资料

管理员:
3. POST /list: 分页查询用户列表
4. GET /{user_id}: 用户详情
5. PATCH /{user_id}: 修改角色 / 状态
6. DELETE /{user_id}: 软删除用户
7. PATCH /{user_id}/status: 修改用户状态
8. GET /{user_id}/identities: 用户的登录方式
9. DELETE /{user_id}/identities/{identity_id}: 解绑用户的登录方式

/me 路由必须声明在 /{user_id} 之前。

Created: 2026-03-02
"""

from uuid import UUID

from fastapi import APIRouter, Request

from userhub.api.deps import AdminClaims, CurrentClaims
from userhub.core.response import ResponseModel
from userhub.domains.identity.constants import IdentityMsg
from userhub.domains.identity.schemas import IdentityRead
from userhub.domains.users.constants import UserMsg
from userhub.domains.users.dependencies import UserServiceDep
from userhub.domains.users.schemas import (
    ProfileRead,
    ProfileUpdate,
    UserAccountRead,
    UserAdminUpdate,
    UserDetailRead,
    UserListRequest,
    UserListResponse,
    UserStatusUpdate,
)

router = APIRouter()


# ------------------------------------------------------------------------------
# 当前用户
# ------------------------------------------------------------------------------


@router.get(
    "/me",
    response_model=ResponseModel[UserDetailRead],
    summary="获取我的账户详情",
    description="返回当前登录用户的角色、状态、资料与已绑定的登录方式。",
)
async def read_me(
    request: Request,
    claims: CurrentClaims,
    service: UserServiceDep,
) -> ResponseModel[UserDetailRead]:
    me = await service.get_detail(claims.user_id)
    return ResponseModel.success(data=me, request=request)


@router.patch(
    "/me/profile",
    response_model=ResponseModel[ProfileRead],
    summary="更新我的资料",
)
async def update_my_profile(
    request: Request,
    body: ProfileUpdate,
    claims: CurrentClaims,
    service: UserServiceDep,
) -> ResponseModel[ProfileRead]:
    profile = await service.update_profile(claims.user_id, body)
    return ResponseModel.success(
        data=ProfileRead.model_validate(profile),
        message=UserMsg.PROFILE_UPDATED,
        request=request,
    )


# ------------------------------------------------------------------------------
# 管理员
# ------------------------------------------------------------------------------


@router.post(
    "/list",
    response_model=ResponseModel[UserListResponse],
    summary="分页查询用户列表 (管理员)",
    description="支持按状态、角色、昵称 (模糊)、注册时间过滤，默认按注册时间倒序、每页 10 条。",
)
async def list_users(
    request: Request,
    body: UserListRequest,
    admin: AdminClaims,
    service: UserServiceDep,
) -> ResponseModel[UserListResponse]:
    data = await service.list_users(body)
    return ResponseModel.success(data=data, request=request)


@router.get(
    "/{user_id}",
    response_model=ResponseModel[UserDetailRead],
    summary="获取用户详情 (管理员)",
)
async def read_user(
    request: Request,
    user_id: UUID,
    admin: AdminClaims,
    service: UserServiceDep,
) -> ResponseModel[UserDetailRead]:
    detail = await service.get_detail(user_id)
    return ResponseModel.success(data=detail, request=request)


@router.patch(
    "/{user_id}",
    response_model=ResponseModel[UserAccountRead],
    summary="修改用户角色 / 状态 (管理员)",
    description="角色变更在用户重新登录或刷新令牌后生效。",
)
async def update_user(
    request: Request,
    user_id: UUID,
    body: UserAdminUpdate,
    admin: AdminClaims,
    service: UserServiceDep,
) -> ResponseModel[UserAccountRead]:
    user = await service.update_user(user_id, body, operator_id=admin.user_id)
    return ResponseModel.success(
        data=UserAccountRead.model_validate(user),
        message=UserMsg.USER_UPDATED,
        request=request,
    )


@router.delete(
    "/{user_id}",
    response_model=ResponseModel[None],
    summary="删除用户 (管理员)",
    description="软删除：用户无法再登录或刷新令牌，其登录身份保留且不可被重新注册。",
)
async def delete_user(
    request: Request,
    user_id: UUID,
    admin: AdminClaims,
    service: UserServiceDep,
) -> ResponseModel[None]:
    await service.soft_delete_user(user_id, operator_id=admin.user_id)
    return ResponseModel.success(message=UserMsg.USER_DELETED, request=request)


@router.patch(
    "/{user_id}/status",
    response_model=ResponseModel[UserAccountRead],
    summary="修改用户状态 (管理员)",
    description="拉黑后该用户无法登录或刷新令牌。",
)
async def update_user_status(
    request: Request,
    user_id: UUID,
    body: UserStatusUpdate,
    admin: AdminClaims,
    service: UserServiceDep,
) -> ResponseModel[UserAccountRead]:
    user = await service.set_status(user_id, body.status, operator_id=admin.user_id)
    return ResponseModel.success(
        data=UserAccountRead.model_validate(user),
        message=UserMsg.STATUS_UPDATED,
        request=request,
    )


@router.get(
    "/{user_id}/identities",
    response_model=ResponseModel[list[IdentityRead]],
    summary="查看用户的登录方式 (管理员)",
)
async def list_user_identities(
    request: Request,
    user_id: UUID,
    admin: AdminClaims,
    service: UserServiceDep,
) -> ResponseModel[list[IdentityRead]]:
    identities = await service.list_user_identities(user_id)
    data = [IdentityRead.model_validate(item) for item in identities]
    return ResponseModel.success(data=data, request=request)


@router.delete(
    "/{user_id}/identities/{identity_id}",
    response_model=ResponseModel[None],
    summary="解绑用户的登录方式 (管理员)",
)
async def unbind_user_identity(
    request: Request,
    user_id: UUID,
    identity_id: UUID,
    admin: AdminClaims,
    service: UserServiceDep,
) -> ResponseModel[None]:
    await service.detach_user_identity(user_id, identity_id, operator_id=admin.user_id)
    return ResponseModel.success(message=IdentityMsg.UNBIND_SUCCESS, request=request)
