"""
角色模块数据访问层
backend/app/repositories/sys_role_repository.py
"""
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlmodel import select, delete, insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import SysRole, sys_role_menus
from app.repositories.base import BaseRepository


class RoleRepository(BaseRepository):
    """角色Repo层"""

    # ------------------------------
    # 查询类方法
    # ------------------------------
    async def get_by_id(self, role_id: int) -> Optional[SysRole]:
        async with self.transaction() as session:
            result = await session.execute(select(SysRole).where(SysRole.id == role_id))
            return result.scalars().first()

    async def get_by_key(self, role_key: str) -> Optional[SysRole]:
        """按角色标识查询（标识唯一，用于创建/更新校验）"""
        async with self.transaction() as session:
            result = await session.execute(select(SysRole).where(SysRole.role_key == role_key))
            return result.scalars().first()

    async def list_page(self, offset: int = 0, limit: int = 10) -> Tuple[List[SysRole], int]:
        """分页查询角色列表：sort ASC, id DESC"""
        async with self.transaction() as session:
            total = (await session.execute(select(func.count()).select_from(SysRole))).scalar_one()
            stmt = (
                select(SysRole)
                .order_by(SysRole.sort.asc(), SysRole.id.desc())
                .offset(offset)
                .limit(limit)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all()), total

    async def count_total(self) -> int:
        async with self.transaction() as session:
            result = await session.execute(select(func.count()).select_from(SysRole))
            return result.scalar_one()

    async def get_menu_ids(self, role_id: int) -> List[int]:
        async with self.transaction() as session:
            stmt = select(sys_role_menus.c.menu_id).where(sys_role_menus.c.role_id == role_id)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    # ------------------------------
    # 写操作类方法（需在事务内执行）
    # ------------------------------
    async def create(self, data: dict, session: AsyncSession) -> SysRole:
        db_role = SysRole(**data)
        session.add(db_role)
        await session.flush()  # 获取角色ID
        await session.refresh(db_role)
        return db_role

    async def update(self, role_id: int, data: dict, session: AsyncSession) -> Optional[SysRole]:
        # 在当前Session内查询角色，避免实例归属错误
        result = await session.execute(select(SysRole).where(SysRole.id == role_id))
        role = result.scalars().first()
        if not role:
            return None
        for key, value in data.items():
            setattr(role, key, value)
        await session.flush()
        await session.refresh(role)
        return role

    async def delete(self, role_id: int, session: AsyncSession) -> bool:
        await self.clear_menus(role_id, session)
        result = await session.execute(delete(SysRole).where(SysRole.id == role_id))
        return result.rowcount > 0

    async def clear_menus(self, role_id: int, session: AsyncSession) -> None:
        """清空角色现有菜单关联"""
        await session.execute(delete(sys_role_menus).where(sys_role_menus.c.role_id == role_id))

    async def append_menus(self, role_id: int, menu_ids: Sequence[int], session: AsyncSession) -> None:
        """批量插入菜单关联（调用方保证已清空且ID去重）"""
        if not menu_ids:
            return
        insert_stmt = insert(sys_role_menus).values(
            [{"role_id": role_id, "menu_id": menu_id} for menu_id in menu_ids]
        )
        await session.execute(insert_stmt)
