"""
File: userhub/domains/auth/verifiers.py
Description: 凭证校验策略 (每种登录方式一个实现)

1. PasswordVerifier: 账号 + 密码哈希比对 (直接确定用户，不会隐式注册)
2. PhoneCodeVerifier: 手机号 + 短信验证码，校验通过即消费 (一次性)
3. WechatMiniProgramVerifier: 小程序 code 换取 openid

校验通过返回 VerifiedCredential，交由 Authenticator 解析 / 创建用户。
所有失败都以 AppException 形式抛出，文案对外稳定。

Created: 2026-03-02
"""

import secrets
import uuid
from abc import ABC, abstractmethod
from typing import ClassVar, Generic, TypeVar

from loguru import logger
from pydantic import BaseModel, ConfigDict
from redis.exceptions import RedisError

from userhub.clients.base import UpstreamError
from userhub.clients.wechat import WechatClient
from userhub.core.error_code import SystemErrorCode
from userhub.core.exceptions import AppException
from userhub.core.security import verify_password_async
from userhub.db.models.enums import IdentityType
from userhub.domains.auth.constants import AuthError
from userhub.domains.auth.schemas import (
    AccountLoginRequest,
    PhoneLoginRequest,
    WechatLoginRequest,
)
from userhub.domains.captcha.repository import CaptchaRepository
from userhub.domains.identity.service import IdentityResolver
from userhub.utils.masking import mask_identifier, mask_phone

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class VerifiedCredential(BaseModel):
    """校验通过的凭证"""

    model_config = ConfigDict(frozen=True)

    identity_type: IdentityType
    identifier: str
    credential: str = ""
    # 校验过程中已确定的用户 (账号密码登录)
    user_id: uuid.UUID | None = None
    # 首次注册时写入档案的昵称
    nickname: str | None = None


class CredentialVerifier(ABC, Generic[PayloadT]):
    identity_type: ClassVar[IdentityType]

    @abstractmethod
    async def verify(self, payload: PayloadT) -> VerifiedCredential: ...


class PasswordVerifier(CredentialVerifier[AccountLoginRequest]):
    identity_type = IdentityType.ACCOUNT_PASSWORD

    def __init__(self, resolver: IdentityResolver):
        self.resolver = resolver

    async def verify(self, payload: AccountLoginRequest) -> VerifiedCredential:
        identity = await self.resolver.find_identity(
            self.identity_type, payload.account
        )

        # 账号不存在时同样执行一次哈希比较，两种失败耗时与文案一致
        matched = await verify_password_async(
            payload.password, identity.credential if identity else None
        )
        if identity is None or not matched:
            logger.bind(
                operation="auth.password", account=mask_identifier(payload.account)
            ).warning("Password login rejected")
            raise AppException(AuthError.INVALID_CREDENTIALS)

        return VerifiedCredential(
            identity_type=self.identity_type,
            identifier=payload.account,
            user_id=identity.user_id,
        )


class PhoneCodeVerifier(CredentialVerifier[PhoneLoginRequest]):
    identity_type = IdentityType.PHONE

    def __init__(self, captcha_repo: CaptchaRepository):
        self.captcha_repo = captcha_repo

    async def verify(self, payload: PhoneLoginRequest) -> VerifiedCredential:
        log = logger.bind(operation="auth.phone", phone=mask_phone(payload.phone))

        try:
            stored = await self.captcha_repo.get(payload.phone)
        except RedisError as e:
            log.opt(exception=e).error("Captcha lookup failed")
            raise AppException(SystemErrorCode.CACHE_ERROR) from e

        if stored is None or not secrets.compare_digest(
            stored.encode(), payload.code.encode()
        ):
            log.warning("Captcha missing or mismatched")
            raise AppException(AuthError.CAPTCHA_ERROR)

        # 一次性消费：删除失败只记录日志，验证码仍会在 TTL 到期后失效
        try:
            consumed = await self.captcha_repo.delete(payload.phone)
        except RedisError as e:
            log.opt(exception=e).error("Failed to consume captcha")
        else:
            if not consumed:
                log.warning("Captcha consumed by a concurrent request")
                raise AppException(AuthError.CAPTCHA_ERROR)

        return VerifiedCredential(
            identity_type=self.identity_type,
            identifier=payload.phone,
            nickname=mask_phone(payload.phone),
        )


class WechatMiniProgramVerifier(CredentialVerifier[WechatLoginRequest]):
    identity_type = IdentityType.WECHAT_MINI_PROGRAM

    def __init__(self, client: WechatClient):
        self.client = client

    async def verify(self, payload: WechatLoginRequest) -> VerifiedCredential:
        try:
            openid = await self.client.exchange_code(payload.code)
        except UpstreamError as e:
            logger.bind(operation="auth.wechat").opt(exception=e).warning(
                "WeChat code exchange failed"
            )
            raise AppException(AuthError.WECHAT_AUTH_FAILED) from e

        return VerifiedCredential(
            identity_type=self.identity_type,
            identifier=openid,
            nickname="",
        )
