"""
File: userhub/api_router.py
Description: 根 API 路由聚合层

聚合各领域 Router，统一设置前缀与 OpenAPI 标签。

Created: 2026-03-02
"""

from fastapi import APIRouter

from userhub.domains.auth.router import router as auth_router
from userhub.domains.identity.router import router as identity_router
from userhub.domains.users.router import router as users_router

api_router = APIRouter()

# 1. 认证模块 (登录 / 注册 / 令牌)
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])

# 2. 登录方式自助管理 (/users/me/...)
# 必须先于用户模块注册，否则 /users/me/identities 会被 /users/{user_id}/identities 匹配
api_router.include_router(identity_router, prefix="/users", tags=["identities"])

# 3. 用户模块 (资料 / 管理)
api_router.include_router(users_router, prefix="/users", tags=["users"])
