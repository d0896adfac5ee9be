"""
角色Service层
backend/app/services/sys_role_service.py
"""
import logging
from typing import List, Tuple

from app.core.exceptions import ResourceNotFound, BadRequest
from app.models import SysRole
from app.repositories.sys_menu_repository import MenuRepository
from app.repositories.sys_role_repository import RoleRepository
from app.repositories.sys_user_repository import UserRepository
from app.schemas.sys_role import RoleCreate, RoleListQuery, RoleUpdate
from app.services.sys_policy_service import PolicyService

logger = logging.getLogger(__name__)


class RoleService:
    """角色Service层：仅管业务逻辑"""
    def __init__(
            self,
            role_repository: RoleRepository,
            menu_repository: MenuRepository,
            user_repository: UserRepository,
            policy_service: PolicyService):
        self.role_repository = role_repository
        self.menu_repository = menu_repository
        self.user_repository = user_repository
        self.policy_service = policy_service

    # ------------------------------
    # 核心业务：创建角色
    # ------------------------------
    async def create_role(self, role_in: RoleCreate) -> SysRole:
        """
        创建角色
        角色标识唯一性为"先查后写"，并发相同请求存在竞态窗口，由数据库唯一约束兜底
        """
        existing_role = await self.role_repository.get_by_key(role_key=role_in.role_key)
        if existing_role:
            raise BadRequest(detail="role key already exists")

        async with self.role_repository.transaction() as session:
            new_role = await self.role_repository.create(data=role_in.model_dump(), session=session)

        logger.info(f"Role created: id={new_role.id}, key={new_role.role_key}")
        return new_role

    # ------------------------------
    # 基础业务：查询角色
    # ------------------------------
    async def get_role_by_id(self, role_id: int) -> SysRole:
        """按ID查询角色（不存在则抛异常）"""
        role = await self.role_repository.get_by_id(role_id=role_id)
        if not role:
            raise ResourceNotFound(detail="role not found")
        return role

    async def get_role_list(self, query: RoleListQuery) -> Tuple[List[SysRole], int]:
        """分页查询角色列表（sort ASC, id DESC）"""
        return await self.role_repository.list_page(offset=query.offset, limit=query.page_size)

    # ------------------------------
    # 基础业务：更新角色
    # ------------------------------
    async def update_role(self, role_in: RoleUpdate) -> SysRole:
        # 1. 业务校验1：角色存在
        role = await self.get_role_by_id(role_id=role_in.id)

        # 2. 业务校验2：角色标识不能与其他角色重复
        if role_in.role_key != role.role_key:
            existing_role = await self.role_repository.get_by_key(role_key=role_in.role_key)
            if existing_role and existing_role.id != role.id:
                raise BadRequest(detail="role key already exists")

        # 3. 更新角色，标识变更时同步迁移API规则
        key_changed = role_in.role_key != role.role_key
        data = role_in.model_dump(exclude={"id"})
        async with self.role_repository.transaction() as session:
            updated_role = await self.role_repository.update(role_id=role.id, data=data, session=session)
            if key_changed:
                await self.policy_service.rename_role_policies(
                    old_key=role.role_key, new_key=role_in.role_key, session=session
                )
        if key_changed:
            await self.policy_service.load_policy()
        return updated_role

    # ------------------------------
    # 基础业务：删除角色
    # ------------------------------
    async def delete_role(self, role_id: int) -> None:
        """删除角色（被用户引用时拒绝，已软删除的用户同样算作引用；同一事务内清理菜单关联和API规则）"""
        role = await self.get_role_by_id(role_id=role_id)

        if await self.user_repository.count_by_role(role_id=role_id) > 0:
            raise BadRequest(detail="cannot delete role with associated users")

        async with self.role_repository.transaction() as session:
            await self.policy_service.delete_role_policies(role_key=role.role_key, session=session)
            await self.role_repository.delete(role_id=role_id, session=session)
        await self.policy_service.load_policy()
        logger.info(f"Role deleted: id={role_id}")

    # ------------------------------
    # 菜单分配
    # ------------------------------
    async def assign_menus(self, role_id: int, menu_ids: List[int]) -> None:
        """
        为角色分配菜单（整体替换）：
        1. 候选ID解析为已存在的菜单，未知ID静默丢弃
        2. 同一事务内清空旧关联并写入新关联，失败则保留原有关联
        """
        await self.get_role_by_id(role_id=role_id)

        menus = await self.menu_repository.list_by_ids(menu_ids=menu_ids)
        valid_menu_ids = [menu.id for menu in menus]

        async with self.role_repository.transaction() as session:
            await self.role_repository.clear_menus(role_id=role_id, session=session)
            await self.role_repository.append_menus(role_id=role_id, menu_ids=valid_menu_ids, session=session)
        logger.info(f"Menus assigned to role {role_id}: {valid_menu_ids}")

    async def get_role_menus(self, role_id: int) -> List[int]:
        """角色当前拥有的菜单ID（扁平列表）"""
        await self.get_role_by_id(role_id=role_id)
        return await self.role_repository.get_menu_ids(role_id=role_id)

    # ------------------------------
    # API权限分配
    # ------------------------------
    async def assign_apis(self, role_id: int, policies: List[List[str]]) -> None:
        """为角色分配API权限（整体替换，重复项合并）"""
        role = await self.get_role_by_id(role_id=role_id)

        unique_policies: List[Tuple[str, str]] = []
        for path, method in policies:
            pair = (path.strip(), method.strip().upper())
            if pair not in unique_policies:
                unique_policies.append(pair)

        await self.policy_service.save_role_policies(role_key=role.role_key, policies=unique_policies)

    async def get_role_apis(self, role_id: int) -> List[List[str]]:
        role = await self.get_role_by_id(role_id=role_id)
        return await self.policy_service.get_role_policies(role_key=role.role_key)
