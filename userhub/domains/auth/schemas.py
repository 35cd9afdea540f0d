"""
File: userhub/domains/auth/schemas.py
Description: 认证领域 Pydantic 模型 (Schema)

1. 请求: 账号注册 / 账号登录 / 手机验证码 / 手机登录 / 微信登录 / 刷新 / 登出 / 修改密码
2. 响应: LoginResponse (user_id + 双 Token)

校验规则集中在 constants.py，这里显式逐字段校验，不依赖全局校验器注册。

Created: 2026-03-02
"""

import uuid

from pydantic import BaseModel, Field, field_validator

from userhub.domains.auth.constants import (
    ACCOUNT_ERROR_MESSAGE,
    ACCOUNT_PATTERN,
    CAPTCHA_LENGTH,
    PASSWORD_ERROR_MESSAGE,
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    PHONE_ERROR_MESSAGE,
    PHONE_PATTERN,
)
from userhub.domains.tokens.schemas import TokenPair


def _check_password(v: str) -> str:
    if not (PASSWORD_MIN_LENGTH <= len(v) <= PASSWORD_MAX_LENGTH):
        raise ValueError(PASSWORD_ERROR_MESSAGE)
    has_letter = any(c.isascii() and c.isalpha() for c in v)
    has_digit = any(c.isdigit() for c in v)
    if not (has_letter and has_digit):
        raise ValueError(PASSWORD_ERROR_MESSAGE)
    return v


def _check_phone(v: str) -> str:
    if not PHONE_PATTERN.match(v):
        raise ValueError(PHONE_ERROR_MESSAGE)
    return v


# ------------------------------------------------------------------------------
# 账号密码
# ------------------------------------------------------------------------------


class AccountRegisterRequest(BaseModel):
    account: str = Field(..., description="账号 (字母/数字/下划线)", examples=["alice"])
    password: str = Field(..., description="密码 (6-30 位，含字母和数字)")
    confirm_password: str = Field(..., description="确认密码")

    @field_validator("account")
    @classmethod
    def validate_account(cls, v: str) -> str:
        if not ACCOUNT_PATTERN.match(v):
            raise ValueError(ACCOUNT_ERROR_MESSAGE)
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)


class AccountLoginRequest(BaseModel):
    account: str = Field(..., min_length=1, max_length=20, description="账号")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)


# ------------------------------------------------------------------------------
# 手机号验证码
# ------------------------------------------------------------------------------


class CaptchaRequest(BaseModel):
    phone: str = Field(..., description="中国大陆手机号", examples=["13800001111"])

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return _check_phone(v)


class PhoneLoginRequest(BaseModel):
    phone: str = Field(..., description="中国大陆手机号", examples=["13800001111"])
    code: str = Field(
        ...,
        min_length=CAPTCHA_LENGTH,
        max_length=CAPTCHA_LENGTH,
        pattern=r"^\d+$",
        description="6 位短信验证码",
    )

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return _check_phone(v)


# ------------------------------------------------------------------------------
# 微信小程序
# ------------------------------------------------------------------------------


class WechatLoginRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=128, description="wx.login 返回的 code")


# ------------------------------------------------------------------------------
# 令牌
# ------------------------------------------------------------------------------


class RefreshRequest(BaseModel):
    """Web 平台可不传，改由 Cookie 携带"""

    refresh_token: str | None = Field(default=None, description="刷新令牌")


class LogoutRequest(BaseModel):
    refresh_token: str | None = Field(default=None, description="待吊销的刷新令牌")


class TokenResponse(BaseModel):
    access_token: str
    # Web 平台置空，改写入 HttpOnly Cookie
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int

    @classmethod
    def from_pair(
        cls, tokens: TokenPair, *, include_refresh: bool = True
    ) -> "TokenResponse":
        return cls(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token if include_refresh else None,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
        )


class LoginResponse(TokenResponse):
    user_id: uuid.UUID

    @classmethod
    def build(
        cls, user_id: uuid.UUID, tokens: TokenPair, *, include_refresh: bool = True
    ) -> "LoginResponse":
        return cls(
            user_id=user_id,
            **TokenResponse.from_pair(
                tokens, include_refresh=include_refresh
            ).model_dump(),
        )


class RegisterResponse(BaseModel):
    user_id: uuid.UUID


# ------------------------------------------------------------------------------
# 修改密码
# ------------------------------------------------------------------------------


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)
    new_password: str = Field(..., description="新密码 (6-30 位，含字母和数字)")
    confirm_password: str = Field(..., description="确认新密码")

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return _check_password(v)
