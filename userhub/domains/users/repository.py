"""
File: userhub/domains/users/repository.py
Description: 用户列表查询仓储

users LEFT JOIN user_profiles 的分页查询，供管理后台使用。
过滤条件与排序字段均为白名单 (由 UserListRequest 的类型约束保证)。

Created: 2026-03-02
"""

from sqlalchemy import ColumnElement, asc, desc, func, select

from userhub.db.models.user import User
from userhub.db.models.user_profile import UserProfile
from userhub.db.repositories.base import BaseRepository
from userhub.domains.users.schemas import UserListRequest


class UserQueryRepository(BaseRepository[User]):
    """用户 + 档案联合查询仓储"""

    @staticmethod
    def _build_filters(req: UserListRequest) -> list[ColumnElement[bool]]:
        filters: list[ColumnElement[bool]] = []
        if not req.include_deleted:
            filters.append(User.is_deleted.is_(False))
        if req.status is not None:
            filters.append(User.status == req.status.value)
        if req.role is not None:
            filters.append(User.role == req.role.value)
        if req.nickname:
            filters.append(UserProfile.nickname.contains(req.nickname, autoescape=True))
        if req.created_from is not None:
            filters.append(User.created_at >= req.created_from)
        if req.created_to is not None:
            filters.append(User.created_at <= req.created_to)
        return filters

    async def list_with_profile(
        self, req: UserListRequest
    ) -> tuple[list[tuple[User, UserProfile | None]], int]:
        """
        分页获取用户及其档案。

        Returns:
            (当前页的 (User, UserProfile) 列表, 满足条件的总数)
        """
        filters = self._build_filters(req)
        join_on = UserProfile.user_id == User.id

        # 1. 总数
        count_stmt = (
            select(func.count())
            .select_from(User)
            .outerjoin(UserProfile, join_on)
            .where(*filters)
        )
        total = (await self.session.execute(count_stmt)).scalar() or 0

        # 2. 当前页 (排序字段相同时按主键兜底，保证翻页稳定)
        direction = desc if req.descending else asc
        order_column = User.created_at if req.order_by == "created_at" else User.id
        stmt = (
            select(User, UserProfile)
            .outerjoin(UserProfile, join_on)
            .where(*filters)
            .order_by(direction(order_column), direction(User.id))
            .offset((req.page - 1) * req.page_size)
            .limit(req.page_size)
        )
        result = await self.session.execute(stmt)
        rows = [(user, profile) for user, profile in result.all()]

        return rows, total
