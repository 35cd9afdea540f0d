"""
File: userhub/domains/auth/router.py
Description: 认证领域 HTTP 路由层

1. POST /account/register: 账号密码注册 (不签发令牌)
2. POST /account/login: 账号密码登录
3. POST /phone/captcha: 下发短信验证码
4. POST /phone/login: 手机号验证码登录 (首次自动注册)
5. POST /wechat/login: 微信小程序登录 (首次自动注册)
6. POST /refresh: 刷新令牌 (旋转)
7. POST /logout: 登出 (吊销 Refresh Token 与 Access Token)

Web 平台 (X-Platform: web)：Refresh Token 写入 HttpOnly Cookie，不出现在响应体中。

Created: 2026-03-02
"""

from typing import Annotated

from fastapi import APIRouter, Body, Cookie, Request, Response

from userhub.api.deps import BearerToken, PlatformDep
from userhub.core.config import settings
from userhub.core.exceptions import AppException
from userhub.core.response import ResponseModel
from userhub.db.models.enums import IdentityType, Platform
from userhub.domains.auth.constants import AuthError, AuthMsg
from userhub.domains.auth.dependencies import AuthenticatorDep
from userhub.domains.auth.schemas import (
    AccountLoginRequest,
    AccountRegisterRequest,
    CaptchaRequest,
    LoginResponse,
    LogoutRequest,
    PhoneLoginRequest,
    RefreshRequest,
    RegisterResponse,
    TokenResponse,
    WechatLoginRequest,
)
from userhub.domains.auth.service import LoginResult

router = APIRouter()

RefreshCookie = Annotated[
    str | None, Cookie(alias=settings.REFRESH_COOKIE_NAME, include_in_schema=False)
]


# ------------------------------------------------------------------------------
# Cookie 辅助
# ------------------------------------------------------------------------------


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=settings.refresh_token_ttl_seconds,
        path=settings.COOKIE_PATH,
        domain=settings.COOKIE_DOMAIN,
        secure=settings.COOKIE_SECURE,
        httponly=settings.COOKIE_HTTP_ONLY,
        samesite=settings.COOKIE_SAMESITE,
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        path=settings.COOKIE_PATH,
        domain=settings.COOKIE_DOMAIN,
        secure=settings.COOKIE_SECURE,
        httponly=settings.COOKIE_HTTP_ONLY,
        samesite=settings.COOKIE_SAMESITE,
    )


def _login_response(
    request: Request, response: Response, result: LoginResult, platform: Platform
) -> ResponseModel[LoginResponse]:
    is_web = platform == Platform.WEB
    if is_web:
        _set_refresh_cookie(response, result.tokens.refresh_token)

    data = LoginResponse.build(
        result.user_id, result.tokens, include_refresh=not is_web
    )
    return ResponseModel.success(
        data=data,
        message=AuthMsg.LOGIN_SUCCESS,
        request=request,
    )


# ------------------------------------------------------------------------------
# 账号密码
# ------------------------------------------------------------------------------


@router.post(
    "/account/register",
    response_model=ResponseModel[RegisterResponse],
    summary="账号注册",
    description="使用账号与密码注册，成功后返回用户 ID，需再调用登录接口获取令牌。",
)
async def register_account(
    request: Request,
    body: AccountRegisterRequest,
    service: AuthenticatorDep,
) -> ResponseModel[RegisterResponse]:
    user_id = await service.register_account(
        body.account, body.password, body.confirm_password
    )
    return ResponseModel.success(
        data=RegisterResponse(user_id=user_id),
        message=AuthMsg.REGISTER_SUCCESS,
        request=request,
    )


@router.post(
    "/account/login",
    response_model=ResponseModel[LoginResponse],
    summary="账号密码登录",
)
async def login_account(
    request: Request,
    response: Response,
    body: AccountLoginRequest,
    platform: PlatformDep,
    service: AuthenticatorDep,
) -> ResponseModel[LoginResponse]:
    result = await service.login_or_register(
        IdentityType.ACCOUNT_PASSWORD, body, platform
    )
    return _login_response(request, response, result, platform)


# ------------------------------------------------------------------------------
# 手机号
# ------------------------------------------------------------------------------


@router.post(
    "/phone/captcha",
    response_model=ResponseModel[None],
    summary="发送短信验证码",
    description="向手机号下发 6 位数字验证码，5 分钟内有效，重复发送会覆盖旧验证码。",
)
async def send_captcha(
    request: Request,
    body: CaptchaRequest,
    service: AuthenticatorDep,
) -> ResponseModel[None]:
    await service.send_captcha(body.phone)
    return ResponseModel.success(
        data=None,
        message=AuthMsg.CAPTCHA_SENT,
        request=request,
    )


@router.post(
    "/phone/login",
    response_model=ResponseModel[LoginResponse],
    summary="手机号验证码登录",
    description="验证码校验通过后登录；手机号首次使用时自动注册。",
)
async def login_phone(
    request: Request,
    response: Response,
    body: PhoneLoginRequest,
    platform: PlatformDep,
    service: AuthenticatorDep,
) -> ResponseModel[LoginResponse]:
    result = await service.login_or_register(IdentityType.PHONE, body, platform)
    return _login_response(request, response, result, platform)


# ------------------------------------------------------------------------------
# 微信小程序
# ------------------------------------------------------------------------------


@router.post(
    "/wechat/login",
    response_model=ResponseModel[LoginResponse],
    summary="微信小程序登录",
    description="使用 wx.login 返回的 code 登录；openid 首次使用时自动注册。",
)
async def login_wechat(
    request: Request,
    response: Response,
    body: WechatLoginRequest,
    platform: PlatformDep,
    service: AuthenticatorDep,
) -> ResponseModel[LoginResponse]:
    result = await service.login_or_register(
        IdentityType.WECHAT_MINI_PROGRAM, body, platform
    )
    return _login_response(request, response, result, platform)


# ------------------------------------------------------------------------------
# 令牌
# ------------------------------------------------------------------------------


@router.post(
    "/refresh",
    response_model=ResponseModel[TokenResponse],
    summary="刷新令牌",
    description="使用 Refresh Token 换取新的一对令牌，旧 Refresh Token 立即失效。",
)
async def refresh_token(
    request: Request,
    response: Response,
    platform: PlatformDep,
    service: AuthenticatorDep,
    refresh_cookie: RefreshCookie = None,
    body: Annotated[RefreshRequest | None, Body()] = None,
) -> ResponseModel[TokenResponse]:
    token = (body.refresh_token if body else None) or refresh_cookie
    if not token:
        raise AppException(AuthError.MISSING_REFRESH_TOKEN)

    tokens = await service.refresh_token(token)

    is_web = platform == Platform.WEB
    if is_web:
        _set_refresh_cookie(response, tokens.refresh_token)

    return ResponseModel.success(
        data=TokenResponse.from_pair(tokens, include_refresh=not is_web),
        message=AuthMsg.REFRESH_SUCCESS,
        request=request,
    )


@router.post(
    "/logout",
    response_model=ResponseModel[None],
    summary="退出登录",
    description="吊销请求体 / Cookie 中的 Refresh Token 以及 Authorization 头中的 Access Token。",
)
async def logout(
    request: Request,
    response: Response,
    access_token: BearerToken,
    service: AuthenticatorDep,
    refresh_cookie: RefreshCookie = None,
    body: Annotated[LogoutRequest | None, Body()] = None,
) -> ResponseModel[None]:
    refresh = (body.refresh_token if body else None) or refresh_cookie
    await service.logout(refresh, access_token)

    if refresh_cookie:
        _clear_refresh_cookie(response)

    return ResponseModel.success(
        data=None,
        message=AuthMsg.LOGOUT_SUCCESS,
        request=request,
    )
