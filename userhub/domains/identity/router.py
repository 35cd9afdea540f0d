"""
File: userhub/domains/identity/router.py
Description: 登录方式自助管理路由 (挂载在 /users 前缀下，需登录)

1. GET /me/identities: 我已绑定的登录方式
2. POST /me/identities/account: 绑定账号密码
3. POST /me/identities/phone: 绑定手机号 (短信验证码校验)
4. POST /me/identities/wechat: 绑定微信小程序
5. DELETE /me/identities/{identity_id}: 解绑 (至少保留一种)
6. PUT /me/password: 修改账号密码

Created: 2026-03-02
"""

from uuid import UUID

from fastapi import APIRouter, Request

from userhub.api.deps import CurrentClaims
from userhub.core.response import ResponseModel
from userhub.db.models.enums import IdentityType
from userhub.domains.auth.dependencies import AuthenticatorDep
from userhub.domains.auth.schemas import (
    AccountRegisterRequest,
    ChangePasswordRequest,
    PhoneLoginRequest,
    WechatLoginRequest,
)
from userhub.domains.identity.constants import IdentityMsg
from userhub.domains.identity.dependencies import IdentityResolverDep
from userhub.domains.identity.schemas import IdentityRead

router = APIRouter()


@router.get(
    "/me/identities",
    response_model=ResponseModel[list[IdentityRead]],
    summary="我的登录方式",
)
async def list_my_identities(
    request: Request,
    claims: CurrentClaims,
    resolver: IdentityResolverDep,
) -> ResponseModel[list[IdentityRead]]:
    identities = await resolver.list_identities(claims.user_id)
    data = [IdentityRead.model_validate(item) for item in identities]
    return ResponseModel.success(data=data, request=request)


# ------------------------------------------------------------------------------
# 绑定
# ------------------------------------------------------------------------------


@router.post(
    "/me/identities/account",
    response_model=ResponseModel[IdentityRead],
    summary="绑定账号密码",
)
async def bind_account(
    request: Request,
    body: AccountRegisterRequest,
    claims: CurrentClaims,
    service: AuthenticatorDep,
) -> ResponseModel[IdentityRead]:
    identity = await service.bind_account(
        claims.user_id, body.account, body.password, body.confirm_password
    )
    return ResponseModel.success(
        data=IdentityRead.model_validate(identity),
        message=IdentityMsg.BIND_SUCCESS,
        request=request,
    )


@router.post(
    "/me/identities/phone",
    response_model=ResponseModel[IdentityRead],
    summary="绑定手机号",
    description="需先调用 /auth/phone/captcha 获取验证码，验证码校验通过即消费。",
)
async def bind_phone(
    request: Request,
    body: PhoneLoginRequest,
    claims: CurrentClaims,
    service: AuthenticatorDep,
) -> ResponseModel[IdentityRead]:
    identity = await service.bind_identity(claims.user_id, IdentityType.PHONE, body)
    return ResponseModel.success(
        data=IdentityRead.model_validate(identity),
        message=IdentityMsg.BIND_SUCCESS,
        request=request,
    )


@router.post(
    "/me/identities/wechat",
    response_model=ResponseModel[IdentityRead],
    summary="绑定微信小程序",
)
async def bind_wechat(
    request: Request,
    body: WechatLoginRequest,
    claims: CurrentClaims,
    service: AuthenticatorDep,
) -> ResponseModel[IdentityRead]:
    identity = await service.bind_identity(
        claims.user_id, IdentityType.WECHAT_MINI_PROGRAM, body
    )
    return ResponseModel.success(
        data=IdentityRead.model_validate(identity),
        message=IdentityMsg.BIND_SUCCESS,
        request=request,
    )


# ------------------------------------------------------------------------------
# 解绑 / 修改密码
# ------------------------------------------------------------------------------


@router.delete(
    "/me/identities/{identity_id}",
    response_model=ResponseModel[None],
    summary="解绑登录方式",
)
async def unbind_my_identity(
    request: Request,
    identity_id: UUID,
    claims: CurrentClaims,
    resolver: IdentityResolverDep,
) -> ResponseModel[None]:
    await resolver.detach_identity(claims.user_id, identity_id)
    return ResponseModel.success(message=IdentityMsg.UNBIND_SUCCESS, request=request)


@router.put(
    "/me/password",
    response_model=ResponseModel[None],
    summary="修改密码",
    description="仅适用于已绑定账号密码的用户；已签发的令牌按有效期自然过期。",
)
async def change_my_password(
    request: Request,
    body: ChangePasswordRequest,
    claims: CurrentClaims,
    service: AuthenticatorDep,
) -> ResponseModel[None]:
    await service.change_password(
        claims.user_id, body.old_password, body.new_password, body.confirm_password
    )
    return ResponseModel.success(message=IdentityMsg.PASSWORD_CHANGED, request=request)
