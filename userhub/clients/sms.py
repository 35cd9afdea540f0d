"""
File: userhub/clients/sms.py
Description: 短信验证码下发客户端

POST {SMS_ENDPOINT}
{"appid", "secret", "env", "template_id", "phone", "data": {"code": ...}}

响应 errcode != 0 视为发送失败。

Created: 2026-03-02
"""

import httpx

from userhub.clients.base import BaseApiClient, UpstreamError
from userhub.core.config import settings


class SmsClient(BaseApiClient):
    def __init__(
        self,
        endpoint: str,
        app_id: str,
        secret: str,
        template_id: str,
        env: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self.endpoint = endpoint
        self.app_id = app_id
        self.secret = secret
        self.template_id = template_id
        self.env = env

    async def send_code(self, phone: str, code: str) -> None:
        """
        Raises:
            UpstreamError: 未配置、网络异常或服务端返回错误码
        """
        if not self.endpoint:
            raise UpstreamError("SMS endpoint is not configured")

        data = await self._request_json(
            "POST",
            self.endpoint,
            json={
                "appid": self.app_id,
                "secret": self.secret,
                "env": self.env,
                "template_id": self.template_id,
                "phone": phone,
                "data": {"code": code},
            },
        )

        errcode = data.get("errcode", 0)
        if errcode:
            raise UpstreamError(f"sms errcode={errcode} errmsg={data.get('errmsg', '')}")


sms_client = SmsClient(
    endpoint=settings.SMS_ENDPOINT,
    app_id=settings.SMS_APP_ID,
    secret=settings.SMS_SECRET,
    template_id=settings.SMS_TEMPLATE_ID,
    env=settings.SMS_ENV,
    timeout=settings.HTTP_CLIENT_TIMEOUT,
)


def get_sms_client() -> SmsClient:
    return sms_client
