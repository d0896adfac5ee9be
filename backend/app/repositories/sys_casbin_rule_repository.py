"""
API访问策略数据访问层
backend/app/repositories/sys_casbin_rule_repository.py
"""
from typing import List, Sequence, Tuple

from sqlmodel import select, delete, insert, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import SysCasbinRule
from app.models.sys_casbin_rule import POLICY_TYPE
from app.repositories.base import BaseRepository


class CasbinRuleRepository(BaseRepository):
    """策略规则Repo层：一条规则 = (角色标识, 路径模式, 请求方法)"""

    async def list_all(self) -> List[Tuple[str, str, str]]:
        """查询全部 (角色标识, path, method) 规则，按ID升序"""
        async with self.transaction() as session:
            stmt = (
                select(SysCasbinRule.v0, SysCasbinRule.v1, SysCasbinRule.v2)
                .where(SysCasbinRule.ptype == POLICY_TYPE)
                .order_by(SysCasbinRule.id.asc())
            )
            result = await session.execute(stmt)
            return [(row[0], row[1], row[2]) for row in result.all()]

    async def clear_role(self, role_key: str, session: AsyncSession) -> None:
        await session.execute(
            delete(SysCasbinRule).where(SysCasbinRule.ptype == POLICY_TYPE, SysCasbinRule.v0 == role_key)
        )

    async def add_policies(self, role_key: str, policies: Sequence[Tuple[str, str]], session: AsyncSession) -> None:
        """批量插入规则（调用方保证已去重）"""
        if not policies:
            return
        insert_stmt = insert(SysCasbinRule).values([
            {"ptype": POLICY_TYPE, "v0": role_key, "v1": path, "v2": method}
            for path, method in policies
        ])
        await session.execute(insert_stmt)

    async def rename_role(self, old_key: str, new_key: str, session: AsyncSession) -> None:
        """角色标识变更时同步迁移规则"""
        await session.execute(
            update(SysCasbinRule)
            .where(SysCasbinRule.ptype == POLICY_TYPE, SysCasbinRule.v0 == old_key)
            .values(v0=new_key)
        )
