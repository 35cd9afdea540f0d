"""
File: userhub/domains/users/dependencies.py
Description: 用户领域依赖注入

DBSession → IdentityResolver → UserService → UserServiceDep
"""

from typing import Annotated

from fastapi import Depends

from userhub.domains.identity.dependencies import IdentityResolverDep
from userhub.domains.users.service import UserService


async def get_user_service(resolver: IdentityResolverDep) -> UserService:
    return UserService(resolver=resolver)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
