"""
File: userhub/domains/identity/schemas.py
Description: 身份领域 Pydantic 模型 (Schema)

登录方式只读视图，凭证 (密码哈希) 永不出现在响应中。

Created: 2026-03-02
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from userhub.db.models.enums import IdentityType


class IdentityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    identity_type: IdentityType
    identifier: str
    created_at: datetime
