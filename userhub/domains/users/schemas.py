"""
File: userhub/domains/users/schemas.py
Description: 用户领域 Pydantic 模型 (Schema)

1. ProfileRead / ProfileUpdate: 展示资料读写 (所有更新字段可选，仅更新显式传入的字段)
2. UserDetailRead: 用户详情 (主体 + 档案 + 已绑定的登录方式)
3. UserStatusUpdate / UserAdminUpdate / UserAccountRead: 管理员修改用户
4. UserListRequest / UserListResponse: 管理员分页查询用户列表

Created: 2026-03-02
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator

from userhub.db.models.enums import Gender, IdentityType, UserRole, UserStatus


class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    nickname: str
    avatar_url: str | None = None
    gender: Gender = Gender.UNKNOWN
    province: str | None = None
    city: str | None = None


class ProfileUpdate(BaseModel):
    nickname: str | None = Field(default=None, min_length=1, max_length=64)
    avatar_url: HttpUrl | None = Field(default=None, description="头像 URL")
    gender: Gender | None = None
    province: str | None = Field(default=None, max_length=64)
    city: str | None = Field(default=None, max_length=64)

    def to_update_dict(self) -> dict[str, object]:
        data = self.model_dump(exclude_unset=True, mode="json")
        # 非空字段不允许显式置空
        for field in ("nickname", "gender"):
            if field in data and data[field] is None:
                data.pop(field)
        return data


class UserDetailRead(BaseModel):
    id: UUID
    role: UserRole
    status: UserStatus
    created_at: datetime
    profile: ProfileRead
    identity_types: list[IdentityType]


# ------------------------------------------------------------------------------
# 管理员
# ------------------------------------------------------------------------------


class UserStatusUpdate(BaseModel):
    status: UserStatus


class UserAdminUpdate(BaseModel):
    """未传字段保持不变"""

    role: UserRole | None = None
    status: UserStatus | None = None

    def to_update_dict(self) -> dict[str, str]:
        return self.model_dump(exclude_none=True, mode="json")


class UserAccountRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    role: UserRole
    status: UserStatus


class UserListRequest(BaseModel):
    status: UserStatus | None = Field(default=None, description="按状态精确过滤")
    role: UserRole | None = Field(default=None, description="按角色精确过滤")
    nickname: str | None = Field(default=None, max_length=64, description="昵称模糊匹配")
    created_from: datetime | None = Field(default=None, description="注册时间起 (含)")
    created_to: datetime | None = Field(default=None, description="注册时间止 (含)")
    include_deleted: bool = Field(default=False, description="是否包含已软删除用户")
    order_by: Literal["created_at", "id"] = "created_at"
    descending: bool = True
    page: int = Field(default=1, ge=1, description="页码")
    page_size: int = Field(default=10, ge=1, le=100, description="每页条数")

    @model_validator(mode="after")
    def check_time_range(self) -> "UserListRequest":
        start, end = self.created_from, self.created_to
        if start and end and start > end:
            raise ValueError("created_from 不能晚于 created_to")
        return self


class UserListItem(BaseModel):
    id: UUID
    role: UserRole
    status: UserStatus
    is_deleted: bool
    created_at: datetime
    # 档案缺失时 (数据异常) 置空，列表不因单条脏数据失败
    profile: ProfileRead | None = None


class UserListResponse(BaseModel):
    items: list[UserListItem]
    total: int
    page: int
    page_size: int
