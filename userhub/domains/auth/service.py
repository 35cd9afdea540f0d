"""
File: userhub/domains/auth/service.py
Description: 认证编排服务 (Authenticator)

本模块负责：
1. 多渠道登录: 凭证校验 -> 解析/创建用户 -> 重新加载用户 -> 状态闸门 -> 签发双 Token
2. 账号注册: 确认密码 -> 账号查重 -> 哈希 -> 原子创建 (不签发令牌)
3. 刷新与登出: 委托 TokenService 旋转 / 吊销
4. 下发短信验证码: 生成 6 位数字 -> 写入 Redis (5 分钟) -> 短信发送
5. 已登录用户绑定手机号 / 微信 / 账号密码，修改密码

登录方式通过 IdentityType 选择 CredentialVerifier 策略，新增登录方式只需注册新的策略。

Created: 2026-03-02
"""

import secrets
import uuid
from collections.abc import Mapping

from loguru import logger
from pydantic import BaseModel, ConfigDict
from redis.exceptions import RedisError

from userhub.clients.base import UpstreamError
from userhub.clients.sms import SmsClient
from userhub.core.error_code import SystemErrorCode
from userhub.core.exceptions import AppException
from userhub.core.security import get_password_hash_async, verify_password_async
from userhub.db.models.enums import IdentityType, Platform
from userhub.db.models.user_identity import UserIdentity
from userhub.domains.auth.constants import CAPTCHA_LENGTH, AuthError
from userhub.domains.auth.verifiers import CredentialVerifier
from userhub.domains.captcha.repository import CaptchaRepository
from userhub.domains.identity.constants import IdentityError
from userhub.domains.identity.service import IdentityResolver
from userhub.domains.tokens.schemas import TokenPair
from userhub.domains.tokens.service import TokenService
from userhub.utils.masking import mask_identifier, mask_phone


class LoginResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    tokens: TokenPair


class Authenticator:
    """认证编排器"""

    def __init__(
        self,
        resolver: IdentityResolver,
        tokens: TokenService,
        verifiers: Mapping[IdentityType, CredentialVerifier],
        captcha_repo: CaptchaRepository,
        sms_client: SmsClient,
    ):
        self.resolver = resolver
        self.tokens = tokens
        self.verifiers = verifiers
        self.captcha_repo = captcha_repo
        self.sms_client = sms_client

    # --------------------------------------------------------------------------
    # 登录 / 注册
    # --------------------------------------------------------------------------

    async def login_or_register(
        self, provider: IdentityType, payload: BaseModel, platform: Platform
    ) -> LoginResult:
        """
        统一登录入口。

        Raises:
            AppException: 凭证错误 / 验证码错误 / 用户状态异常 / 基础设施故障
        """
        verifier = self.verifiers.get(provider)
        if verifier is None:
            raise AppException(
                SystemErrorCode.INVALID_PARAMS, message=f"不支持的登录方式: {provider}"
            )

        verified = await verifier.verify(payload)

        user_id = verified.user_id
        if user_id is None:
            user_id = await self.resolver.resolve_or_create(
                verified.identity_type,
                verified.identifier,
                verified.credential,
                nickname=verified.nickname,
            )

        # 角色 / 状态以数据库为准
        user = await self.resolver.load_user(user_id)
        self.resolver.ensure_active(user)

        tokens = self.tokens.issue_pair(user, platform)
        logger.bind(
            operation="auth.login",
            provider=provider.value,
            platform=platform.value,
            user_id=str(user.id),
        ).info("User logged in")
        return LoginResult(user_id=user.id, tokens=tokens)

    async def register_account(
        self, account: str, password: str, confirm_password: str
    ) -> uuid.UUID:
        """账号密码注册，仅返回新用户 ID。"""
        if password != confirm_password:
            raise AppException(AuthError.PASSWORD_MISMATCH)

        identity_type = IdentityType.ACCOUNT_PASSWORD
        if await self.resolver.find_identity(identity_type, account) is not None:
            logger.bind(
                operation="auth.register", account=mask_identifier(account)
            ).warning("Account already exists")
            raise AppException(AuthError.ACCOUNT_EXIST)

        hashed_password = await get_password_hash_async(password)

        try:
            return await self.resolver.create_identity_owner(
                identity_type, account, hashed_password, nickname=account
            )
        except AppException as e:
            # 查重后被并发请求抢先注册
            if e.error is IdentityError.IDENTITY_EXISTS:
                raise AppException(AuthError.ACCOUNT_EXIST) from e
            raise

    # --------------------------------------------------------------------------
    # 绑定登录方式 / 修改密码 (已登录用户)
    # --------------------------------------------------------------------------

    async def bind_identity(
        self, user_id: uuid.UUID, provider: IdentityType, payload: BaseModel
    ) -> UserIdentity:
        """
        校验手机号 / 微信凭证后，将其作为新的登录方式绑定到当前用户。
        凭证校验与登录共用同一套策略 (验证码同样一次性消费)。
        """
        verifier = self.verifiers.get(provider)
        if verifier is None or provider is IdentityType.ACCOUNT_PASSWORD:
            raise AppException(
                SystemErrorCode.INVALID_PARAMS, message=f"不支持的绑定方式: {provider}"
            )

        user = await self.resolver.load_user(user_id)
        self.resolver.ensure_active(user)

        verified = await verifier.verify(payload)
        return await self.resolver.attach_identity(
            user_id, verified.identity_type, verified.identifier, verified.credential
        )

    async def bind_account(
        self,
        user_id: uuid.UUID,
        account: str,
        password: str,
        confirm_password: str,
    ) -> UserIdentity:
        if password != confirm_password:
            raise AppException(AuthError.PASSWORD_MISMATCH)

        user = await self.resolver.load_user(user_id)
        self.resolver.ensure_active(user)

        hashed_password = await get_password_hash_async(password)
        try:
            return await self.resolver.attach_identity(
                user_id, IdentityType.ACCOUNT_PASSWORD, account, hashed_password
            )
        except AppException as e:
            if e.error is IdentityError.IDENTITY_EXISTS:
                raise AppException(AuthError.ACCOUNT_EXIST) from e
            raise

    async def change_password(
        self,
        user_id: uuid.UUID,
        old_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        """
        修改账号密码身份的凭证。

        已签发的令牌不受影响，按各自有效期自然过期。
        """
        if new_password != confirm_password:
            raise AppException(AuthError.PASSWORD_MISMATCH)

        identity = await self.resolver.find_user_identity(
            user_id, IdentityType.ACCOUNT_PASSWORD
        )
        if identity is None:
            raise AppException(IdentityError.IDENTITY_NOT_FOUND)

        if not await verify_password_async(old_password, identity.credential):
            logger.bind(operation="auth.change_password", user_id=str(user_id)).warning(
                "Old password mismatch"
            )
            raise AppException(AuthError.OLD_PASSWORD_INCORRECT)

        hashed_password = await get_password_hash_async(new_password)
        await self.resolver.replace_credential(identity, hashed_password)
        logger.bind(operation="auth.change_password", user_id=str(user_id)).info(
            "Password changed"
        )

    # --------------------------------------------------------------------------
    # 令牌
    # --------------------------------------------------------------------------

    async def refresh_token(self, refresh_token: str) -> TokenPair:
        return await self.tokens.rotate(refresh_token)

    async def logout(self, *tokens: str | None) -> None:
        """吊销传入的所有令牌 (Access / Refresh 均可)，空值忽略，不抛业务异常"""
        for token in tokens:
            if token:
                await self.tokens.revoke(token)

    # --------------------------------------------------------------------------
    # 短信验证码
    # --------------------------------------------------------------------------

    async def send_captcha(self, phone: str) -> None:
        code = "".join(secrets.choice("0123456789") for _ in range(CAPTCHA_LENGTH))
        log = logger.bind(operation="auth.captcha", phone=mask_phone(phone))

        try:
            await self.captcha_repo.set(phone, code)
        except RedisError as e:
            log.opt(exception=e).error("Failed to store captcha")
            raise AppException(SystemErrorCode.CACHE_ERROR) from e

        try:
            await self.sms_client.send_code(phone, code)
        except UpstreamError as e:
            log.opt(exception=e).error("Failed to send captcha sms")
            raise AppException(SystemErrorCode.UPSTREAM_ERROR) from e

        log.info("Captcha sent")
