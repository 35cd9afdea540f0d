"""
File: userhub/domains/identity/dependencies.py
Description: 身份领域依赖注入

DBSession → IdentityResolver → IdentityResolverDep
"""

from typing import Annotated

from fastapi import Depends

from userhub.api.deps import DBSession
from userhub.domains.identity.service import IdentityResolver


async def get_identity_resolver(session: DBSession) -> IdentityResolver:
    return IdentityResolver(session=session)


IdentityResolverDep = Annotated[IdentityResolver, Depends(get_identity_resolver)]
