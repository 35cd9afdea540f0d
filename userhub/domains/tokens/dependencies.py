"""
File: userhub/domains/tokens/dependencies.py
Description: 令牌领域依赖注入

RedisClient → TokenBlacklistRepository ┐
IdentityResolverDep ───────────────────┴→ TokenService → TokenServiceDep
"""

from typing import Annotated

from fastapi import Depends

from userhub.api.deps import RedisClient
from userhub.domains.identity.dependencies import IdentityResolverDep
from userhub.domains.tokens.repository import TokenBlacklistRepository
from userhub.domains.tokens.service import TokenService


async def get_token_service(
    redis: RedisClient, resolver: IdentityResolverDep
) -> TokenService:
    return TokenService(blacklist=TokenBlacklistRepository(redis), resolver=resolver)


TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]
