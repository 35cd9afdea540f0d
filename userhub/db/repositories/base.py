"""
File: userhub/db/repositories/base.py
Description: 通用异步 Repository 基类

约定：Repository 只做 add / flush，不做 commit；事务边界由 Service 层控制。
update 会过滤 id / created_at / updated_at 等系统字段，is_deleted 不在其列 (软删除走 update)。

Created: 2026-03-02
"""

from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from userhub.db.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """通用仓储基类"""

    PROTECTED_FIELDS: ClassVar[set[str]] = {"id", "created_at", "updated_at"}

    def __init__(self, model: type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    # --------------------------------------------------------------------------
    # 查询操作 (Read)
    # --------------------------------------------------------------------------

    async def get(self, id: Any, *, fresh: bool = False) -> ModelType | None:
        """
        根据主键查询单条记录。

        fresh=True 时绕过 Session 身份映射缓存，强制以数据库当前值刷新对象。
        """
        if fresh:
            return await self.session.get(self.model, id, populate_existing=True)
        return await self.session.get(self.model, id)

    # --------------------------------------------------------------------------
    # 写入操作 (Create / Update / Delete)
    # --------------------------------------------------------------------------

    async def add(self, db_obj: ModelType) -> ModelType:
        """
        加入会话并 flush。
        唯一约束冲突会在此处以 IntegrityError 抛出，由 Service 层回滚。
        """
        self.session.add(db_obj)
        await self.session.flush()
        return db_obj

    async def update(
        self, db_obj: ModelType, obj_in: BaseModel | dict[str, Any]
    ) -> ModelType:
        """更新现有记录，支持传入 Schema 或字典。"""
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            if field in self.PROTECTED_FIELDS:
                continue
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        self.session.add(db_obj)
        await self.session.flush()
        await self.session.refresh(db_obj)
        return db_obj

    async def delete(self, db_obj: ModelType) -> None:
        """
        物理删除记录。

        用户主表使用软删除 (update 设置 is_deleted / deleted_at)，不走此方法。
        """
        await self.session.delete(db_obj)
        await self.session.flush()
