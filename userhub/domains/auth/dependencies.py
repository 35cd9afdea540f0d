"""
File: userhub/domains/auth/dependencies.py
Description: 认证领域依赖注入

组装 Authenticator 及其登录策略：
- 账号密码: PasswordVerifier(IdentityResolver)
- 手机号: PhoneCodeVerifier(CaptchaRepository)
- 微信小程序: WechatMiniProgramVerifier(WechatClient)
"""

from typing import Annotated

from fastapi import Depends

from userhub.api.deps import RedisClient
from userhub.clients.sms import SmsClient, get_sms_client
from userhub.clients.wechat import WechatClient, get_wechat_client
from userhub.db.models.enums import IdentityType
from userhub.domains.auth.service import Authenticator
from userhub.domains.auth.verifiers import (
    PasswordVerifier,
    PhoneCodeVerifier,
    WechatMiniProgramVerifier,
)
from userhub.domains.captcha.repository import CaptchaRepository
from userhub.domains.identity.dependencies import IdentityResolverDep
from userhub.domains.tokens.dependencies import TokenServiceDep


async def get_authenticator(
    redis: RedisClient,
    resolver: IdentityResolverDep,
    token_service: TokenServiceDep,
    wechat_client: Annotated[WechatClient, Depends(get_wechat_client)],
    sms_client: Annotated[SmsClient, Depends(get_sms_client)],
) -> Authenticator:
    captcha_repo = CaptchaRepository(redis)
    return Authenticator(
        resolver=resolver,
        tokens=token_service,
        verifiers={
            IdentityType.ACCOUNT_PASSWORD: PasswordVerifier(resolver),
            IdentityType.PHONE: PhoneCodeVerifier(captcha_repo),
            IdentityType.WECHAT_MINI_PROGRAM: WechatMiniProgramVerifier(wechat_client),
        },
        captcha_repo=captcha_repo,
        sms_client=sms_client,
    )


AuthenticatorDep = Annotated[Authenticator, Depends(get_authenticator)]
