"""
用户模块数据访问层
backend/app/repositories/sys_user_repository.py
软删除：deleted_at非空的用户对所有查询不可见（用户名唯一性校验除外）
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, update
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.query_builder import create_user_query_builder
from app.models import SysUser
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository):
    """用户Repo层（role关系为selectin，查询时自动预加载角色）"""

    # ------------------------------
    # 查询类方法
    # ------------------------------
    async def get_by_id(self, user_id: int) -> Optional[SysUser]:
        async with self.transaction() as session:
            stmt = select(SysUser).where(SysUser.id == user_id, SysUser.deleted_at.is_(None))
            result = await session.execute(stmt)
            return result.scalars().first()

    async def get_by_username(self, username: str) -> Optional[SysUser]:
        """按用户名查询未删除的用户（登录使用）"""
        async with self.transaction() as session:
            stmt = select(SysUser).where(SysUser.username == username, SysUser.deleted_at.is_(None))
            result = await session.execute(stmt)
            return result.scalars().first()

    async def username_exists(self, username: str, exclude_id: Optional[int] = None) -> bool:
        """用户名是否已被占用（含已软删除的用户，与唯一索引保持一致）"""
        async with self.transaction() as session:
            stmt = select(SysUser.id).where(SysUser.username == username)
            if exclude_id is not None:
                stmt = stmt.where(SysUser.id != exclude_id)
            result = await session.execute(stmt.limit(1))
            return result.scalars().first() is not None

    async def list_page(
        self,
        offset: int = 0,
        limit: int = 10,
        filters: Optional[Dict[str, Any]] = None
    ) -> Tuple[List[SysUser], int]:
        """
        分页条件查询
        filters键为查询构建器策略名，如 username__like / role_id__eq / active__is
        """
        builder = create_user_query_builder()
        builder.filter(**(filters or {}))
        base_query = select(SysUser).where(SysUser.deleted_at.is_(None))

        async with self.transaction() as session:
            count_stmt = select(func.count()).select_from(builder.build(base_query).subquery())
            total = (await session.execute(count_stmt)).scalar_one()

            stmt = builder.paginate(offset=offset, limit=limit).build_paginated(base_query)
            result = await session.execute(stmt)
            return list(result.scalars().all()), total

    async def count_total(self) -> int:
        async with self.transaction() as session:
            stmt = select(func.count()).select_from(SysUser).where(SysUser.deleted_at.is_(None))
            return (await session.execute(stmt)).scalar_one()

    async def count_by_role(self, role_id: int) -> int:
        """统计引用某角色的用户数（含已软删除的用户，其行仍通过外键引用角色）"""
        async with self.transaction() as session:
            stmt = select(func.count()).select_from(SysUser).where(SysUser.role_id == role_id)
            return (await session.execute(stmt)).scalar_one()

    # ------------------------------
    # 写操作类方法（需在事务内执行）
    # ------------------------------
    async def create(self, data: dict, session: AsyncSession) -> SysUser:
        db_user = SysUser(**data)
        session.add(db_user)
        await session.flush()  # 刷新获取用户ID（不提交事务）
        await session.refresh(db_user, attribute_names=["role"])
        return db_user

    async def update(self, user_id: int, data: dict, session: AsyncSession) -> Optional[SysUser]:
        result = await session.execute(
            select(SysUser).where(SysUser.id == user_id, SysUser.deleted_at.is_(None))
        )
        user = result.scalars().first()
        if not user:
            return None
        for key, value in data.items():
            setattr(user, key, value)
        await session.flush()
        # 角色可能变更，重新加载role关系
        await session.refresh(user, attribute_names=["role"])
        return user

    async def soft_delete(self, user_id: int, session: AsyncSession) -> bool:
        stmt = (
            update(SysUser)
            .where(SysUser.id == user_id, SysUser.deleted_at.is_(None))
            .values(deleted_at=datetime.now())
        )
        result = await session.execute(stmt)
        return result.rowcount > 0
