"""
File: tests/utils.py
Description: 测试辅助函数

Created: 2026-03-02
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from userhub.db.models.base import Base


async def count_rows(session: AsyncSession, model: type[Base]) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()
