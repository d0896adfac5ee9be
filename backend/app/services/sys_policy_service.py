"""
API访问策略Service层
backend/app/services/sys_policy_service.py
判定交给Casbin执行器（keyMatch2模型），规则持久化在sys_casbin_rules
"""
import logging
from typing import List, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.casbin_enforcer import PolicyEnforcer
from app.core.exceptions import PermissionDenied
from app.repositories.sys_casbin_rule_repository import CasbinRuleRepository
from app.repositories.sys_role_repository import RoleRepository

logger = logging.getLogger(__name__)

SUPER_ROLE_KEY = "admin"


class PolicyService:
    """API权限判定与角色API规则维护"""
    def __init__(
            self,
            policy_enforcer: PolicyEnforcer,
            casbin_rule_repository: CasbinRuleRepository,
            role_repository: RoleRepository):
        self.policy_enforcer = policy_enforcer
        self.casbin_rule_repository = casbin_rule_repository
        self.role_repository = role_repository

    @property
    def enforcer(self):
        return self.policy_enforcer.enforcer

    # ------------------------------
    # 策略加载
    # ------------------------------
    async def load_policy(self) -> None:
        """从数据库重新加载全部规则"""
        rules = await self.casbin_rule_repository.list_all()
        self.policy_enforcer.load(rules)
        logger.info(f"Casbin policies loaded: {len(rules)}")

    async def ensure_loaded(self) -> None:
        if not self.policy_enforcer.loaded:
            await self.load_policy()

    # ------------------------------
    # 权限判定
    # ------------------------------
    async def enforce(self, role_key: str, path: str, method: str) -> bool:
        if role_key == SUPER_ROLE_KEY:
            return True
        await self.ensure_loaded()
        return bool(self.enforcer.enforce(role_key, path, method.upper()))

    async def check_permission(self, role_id: int, path: str, method: str) -> None:
        """按令牌中的角色ID校验访问权限，不通过抛出PermissionDenied"""
        role = await self.role_repository.get_by_id(role_id=role_id)
        if not role:
            raise PermissionDenied(detail="role not found")
        if not role.status:
            raise PermissionDenied(detail="role is disabled")

        if not await self.enforce(role.role_key, path, method):
            logger.warning(f"Access denied for role: {role.role_key} path: {path} method: {method}")
            raise PermissionDenied()

    # ------------------------------
    # 角色规则维护
    # ------------------------------
    async def get_role_policies(self, role_key: str) -> List[List[str]]:
        """角色的全部 [path, method] 规则（按写入顺序）"""
        await self.ensure_loaded()
        return [[rule[1], rule[2]] for rule in self.enforcer.get_filtered_policy(0, role_key)]

    async def save_role_policies(self, role_key: str, policies: Sequence[Tuple[str, str]]) -> None:
        """
        整体替换角色规则：先在事务内落库，提交成功后再同步执行器
        调用方保证policies已去重
        """
        async with self.casbin_rule_repository.transaction() as session:
            await self.casbin_rule_repository.clear_role(role_key=role_key, session=session)
            await self.casbin_rule_repository.add_policies(role_key=role_key, policies=policies, session=session)

        if not self.policy_enforcer.loaded:
            return
        self.enforcer.remove_filtered_policy(0, role_key)
        if policies:
            self.enforcer.add_policies([[role_key, path, method] for path, method in policies])
        logger.info(f"Policies updated for role {role_key}: {len(policies)}")

    async def delete_role_policies(self, role_key: str, session: AsyncSession) -> None:
        """在调用方事务内删除角色规则（提交后需调用load_policy）"""
        await self.casbin_rule_repository.clear_role(role_key=role_key, session=session)

    async def rename_role_policies(self, old_key: str, new_key: str, session: AsyncSession) -> None:
        """在调用方事务内迁移角色规则（提交后需调用load_policy）"""
        await self.casbin_rule_repository.rename_role(old_key=old_key, new_key=new_key, session=session)
