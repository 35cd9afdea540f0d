"""
File: userhub/clients/base.py
Description: 外部 HTTP API 客户端基类 (httpx.AsyncClient 懒加载 + 关闭)

Created: 2026-03-02
"""

from typing import Any

import httpx


class UpstreamError(Exception):
    """第三方服务调用失败 (网络异常 / 非 200 / 业务错误码)"""


class BaseApiClient:
    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _request_json(
        self, method: str, url: str, **kwargs: Any
    ) -> dict[str, Any]:
        """发送请求并解析 JSON，任何传输 / 状态 / 解析失败统一转为 UpstreamError"""
        try:
            response = await self._get_client().request(method, url, **kwargs)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise UpstreamError(f"{method} {url} failed: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"{method} {url} returned invalid json") from e

        if not isinstance(data, dict):
            raise UpstreamError(f"{method} {url} returned unexpected payload")
        return data
