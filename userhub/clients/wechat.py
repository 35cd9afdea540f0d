"""
File: userhub/clients/wechat.py
Description: 微信小程序 code2Session 客户端

GET {WECHAT_API_BASE}/sns/jscode2session
    ?appid=...&secret=...&js_code=...&grant_type=authorization_code

成功返回 openid；errcode != 0 或缺少 openid 抛出 UpstreamError。
openid 由微信服务端签发，调用方无需再校验。

Created: 2026-03-02
"""

import httpx
from loguru import logger

from userhub.clients.base import BaseApiClient, UpstreamError
from userhub.core.config import settings

JSCODE2SESSION_PATH = "/sns/jscode2session"


class WechatClient(BaseApiClient):
    """微信小程序服务端 API 客户端"""

    def __init__(
        self,
        app_id: str,
        app_secret: str,
        base_url: str = "https://api.weixin.qq.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)
        self.app_id = app_id
        self.app_secret = app_secret

    async def exchange_code(self, code: str) -> str:
        """
        用小程序 wx.login 获得的 code 换取 openid。

        Raises:
            UpstreamError: 网络异常或微信返回业务错误
        """
        data = await self._request_json(
            "GET",
            JSCODE2SESSION_PATH,
            params={
                "appid": self.app_id,
                "secret": self.app_secret,
                "js_code": code,
                "grant_type": "authorization_code",
            },
        )

        errcode = data.get("errcode", 0)
        if errcode:
            logger.bind(errcode=errcode, errmsg=data.get("errmsg", "")).warning(
                "WeChat jscode2session rejected the code"
            )
            raise UpstreamError(f"jscode2session errcode={errcode}")

        openid = data.get("openid")
        if not openid:
            raise UpstreamError("jscode2session response missing openid")
        return openid


wechat_client = WechatClient(
    app_id=settings.WECHAT_APP_ID,
    app_secret=settings.WECHAT_APP_SECRET,
    base_url=settings.WECHAT_API_BASE,
    timeout=settings.HTTP_CLIENT_TIMEOUT,
)


def get_wechat_client() -> WechatClient:
    """依赖注入入口，测试中可 override 为桩实现。"""
    return wechat_client
