"""
File: userhub/core/response.py
Description: 统一响应信封（Unified Response Envelope）

所有业务接口统一返回:
{code, message, data, request_id, timestamp}

1. 成功时 code 固定为 "success"，失败时为 "domain.reason" 形式的业务码
2. request_id 由 RequestLogMiddleware 写入 request.state，传入 request 即可自动带出
3. /health 例外，返回原始 JSON

Created: 2026-03-02
"""

from datetime import UTC, datetime
from typing import Any, Generic, TypeVar, cast

from pydantic import BaseModel, ConfigDict, Field
from starlette.requests import Request

T = TypeVar("T")

SUCCESS_CODE = "success"


def get_request_id(request: Request | None) -> str | None:
    if request is None:
        return None
    return getattr(request.state, "request_id", None)


class ResponseBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str = Field(default=SUCCESS_CODE, description="业务状态码")
    message: str = Field(default="Success", description="响应消息")
    request_id: str | None = Field(default=None, description="请求追踪ID")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="响应生成时间 (UTC)",
    )


class ResponseModel(ResponseBase, Generic[T]):
    data: T | None = Field(default=None, description="业务数据")

    @classmethod
    def success(
        cls,
        data: T | None = None,
        message: str = "Success",
        *,
        request: Request | None = None,
    ) -> "ResponseModel[T]":
        # UUID / datetime 等字段先转为 JSON 安全的值
        if isinstance(data, BaseModel):
            data = cast(Any, data.model_dump(mode="json"))

        return cls(
            code=SUCCESS_CODE,
            message=message,
            data=data,
            request_id=get_request_id(request),
        )

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        data: Any = None,
        *,
        request: Request | None = None,
    ) -> "ResponseModel[Any]":
        return cls(
            code=code,
            message=message,
            data=data,
            # 失败响应必须可追踪，中间件未生效时标记为 unknown
            request_id=get_request_id(request) or "unknown",
        )
