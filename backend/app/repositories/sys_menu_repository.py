"""
菜单模块数据访问层
backend/app/repositories/sys_menu_repository.py
"""
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlmodel import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import SysMenu, sys_role_menus
from app.repositories.base import BaseRepository


class MenuRepository(BaseRepository):
    """菜单Repo层：所有列表查询统一按 sort ASC, id ASC 排序"""

    ORDERING = (SysMenu.sort.asc(), SysMenu.id.asc())

    # ------------------------------
    # 查询类方法
    # ------------------------------
    async def get_by_id(self, menu_id: int) -> Optional[SysMenu]:
        async with self.transaction() as session:
            result = await session.execute(select(SysMenu).where(SysMenu.id == menu_id))
            return result.scalars().first()

    async def get_parent_id(self, menu_id: int) -> Optional[int]:
        """查询父菜单ID（菜单不存在返回None）"""
        async with self.transaction() as session:
            result = await session.execute(select(SysMenu.parent_id).where(SysMenu.id == menu_id))
            return result.scalars().first()

    async def list_all(self) -> List[SysMenu]:
        async with self.transaction() as session:
            result = await session.execute(select(SysMenu).order_by(*self.ORDERING))
            return list(result.scalars().all())

    async def list_by_ids(self, menu_ids: Sequence[int]) -> List[SysMenu]:
        """按ID批量解析已存在的菜单（不存在的ID被忽略）"""
        if not menu_ids:
            return []
        async with self.transaction() as session:
            stmt = select(SysMenu).where(SysMenu.id.in_(set(menu_ids))).order_by(*self.ORDERING)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def list_by_role_ids(self, role_ids: Sequence[int]) -> List[SysMenu]:
        """多个角色的菜单并集（去重）"""
        if not role_ids:
            return []
        async with self.transaction() as session:
            menu_ids = (
                select(sys_role_menus.c.menu_id)
                .where(sys_role_menus.c.role_id.in_(set(role_ids)))
                .distinct()
            )
            stmt = select(SysMenu).where(SysMenu.id.in_(menu_ids)).order_by(*self.ORDERING)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def has_children(self, menu_id: int) -> bool:
        async with self.transaction() as session:
            stmt = select(SysMenu.id).where(SysMenu.parent_id == menu_id).limit(1)
            result = await session.execute(stmt)
            return result.scalars().first() is not None

    async def count_total(self) -> int:
        async with self.transaction() as session:
            result = await session.execute(select(func.count()).select_from(SysMenu))
            return result.scalar_one()

    # ------------------------------
    # 写操作类方法（需在事务内执行）
    # ------------------------------
    async def create(self, data: dict, session: AsyncSession) -> SysMenu:
        db_menu = SysMenu(**data)
        session.add(db_menu)
        await session.flush()
        await session.refresh(db_menu)
        return db_menu

    async def update(self, menu_id: int, data: dict, session: AsyncSession) -> Optional[SysMenu]:
        # 在当前Session内查询，避免实例归属错误
        result = await session.execute(select(SysMenu).where(SysMenu.id == menu_id))
        menu = result.scalars().first()
        if not menu:
            return None
        for key, value in data.items():
            setattr(menu, key, value)
        await session.flush()
        await session.refresh(menu)
        return menu

    async def delete(self, menu_id: int, session: AsyncSession) -> bool:
        # 先清理角色关联，再删除菜单
        await session.execute(delete(sys_role_menus).where(sys_role_menus.c.menu_id == menu_id))
        result = await session.execute(delete(SysMenu).where(SysMenu.id == menu_id))
        return result.rowcount > 0
