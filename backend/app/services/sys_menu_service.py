"""
菜单Service层
backend/app/services/sys_menu_service.py
"""
import logging
from typing import List, Sequence

from app.core.exceptions import ResourceNotFound, BadRequest
from app.models import SysMenu
from app.repositories.sys_menu_repository import MenuRepository
from app.repositories.sys_role_repository import RoleRepository
from app.schemas.sys_menu import MenuCreate, MenuUpdate, MenuTreeNode
from app.utils.menu_tree import build_menu_tree, count_tree_nodes

logger = logging.getLogger(__name__)


class MenuService:
    """菜单Service层：树构建 + 父子关系校验"""
    def __init__(self, menu_repository: MenuRepository, role_repository: RoleRepository):
        self.menu_repository = menu_repository
        self.role_repository = role_repository

    @staticmethod
    def _to_db(menu_in: MenuCreate) -> dict:
        data = menu_in.model_dump(exclude={"id", "meta"})
        data["meta"] = menu_in.meta.to_db()
        return data

    # ------------------------------
    # 创建菜单
    # ------------------------------
    async def create_menu(self, menu_in: MenuCreate) -> SysMenu:
        """创建菜单（parent_id>0时父菜单必须存在）"""
        if menu_in.parent_id > 0:
            parent = await self.menu_repository.get_by_id(menu_id=menu_in.parent_id)
            if not parent:
                raise BadRequest(detail="parent menu not found")

        async with self.menu_repository.transaction() as session:
            new_menu = await self.menu_repository.create(data=self._to_db(menu_in), session=session)
        logger.info(f"Menu created: id={new_menu.id}, name={new_menu.name}")
        return new_menu

    # ------------------------------
    # 更新菜单
    # ------------------------------
    async def update_menu(self, menu_in: MenuUpdate) -> SysMenu:
        """
        更新菜单：
        1. 菜单必须存在
        2. 不能以自身为父菜单
        3. 父菜单必须存在，且不能是自身的后代（沿父链向上检查，防止形成环）
        """
        await self.get_menu_by_id(menu_id=menu_in.id)

        if menu_in.parent_id == menu_in.id:
            raise BadRequest(detail="cannot set self as parent menu")

        if menu_in.parent_id > 0:
            parent = await self.menu_repository.get_by_id(menu_id=menu_in.parent_id)
            if not parent:
                raise BadRequest(detail="parent menu not found")
            if await self._is_descendant(menu_id=menu_in.id, candidate_id=menu_in.parent_id):
                raise BadRequest(detail="cannot set a descendant as parent menu")

        async with self.menu_repository.transaction() as session:
            updated_menu = await self.menu_repository.update(
                menu_id=menu_in.id, data=self._to_db(menu_in), session=session
            )
        return updated_menu

    async def _is_descendant(self, menu_id: int, candidate_id: int) -> bool:
        """candidate_id是否位于menu_id的子树中（沿candidate的父链向上查找）"""
        visited = set()
        current_id = candidate_id
        while current_id and current_id not in visited:
            if current_id == menu_id:
                return True
            visited.add(current_id)
            current_id = await self.menu_repository.get_parent_id(menu_id=current_id)
        return False

    # ------------------------------
    # 删除菜单
    # ------------------------------
    async def delete_menu(self, menu_id: int) -> None:
        """删除菜单（存在子菜单时拒绝；同时清理角色关联）"""
        await self.get_menu_by_id(menu_id=menu_id)

        if await self.menu_repository.has_children(menu_id=menu_id):
            raise BadRequest(detail="cannot delete menu with child menus")

        async with self.menu_repository.transaction() as session:
            await self.menu_repository.delete(menu_id=menu_id, session=session)
        logger.info(f"Menu deleted: id={menu_id}")

    # ------------------------------
    # 查询
    # ------------------------------
    async def get_menu_by_id(self, menu_id: int) -> SysMenu:
        menu = await self.menu_repository.get_by_id(menu_id=menu_id)
        if not menu:
            raise ResourceNotFound(detail="menu not found")
        return menu

    async def get_all_menus(self) -> List[SysMenu]:
        """全部菜单（扁平，sort ASC, id ASC）"""
        return await self.menu_repository.list_all()

    async def get_menu_tree(self, role_id: int = 0) -> List[MenuTreeNode]:
        """
        获取菜单树：
        - role_id=0：全部菜单
        - 其他：仅该角色关联的菜单；角色没有菜单时返回空树
        meta.hidden只是展示提示，不参与过滤
        """
        if role_id == 0:
            menus = await self.menu_repository.list_all()
        else:
            role = await self.role_repository.get_by_id(role_id=role_id)
            if not role:
                raise ResourceNotFound(detail="role not found")
            menus = await self.menu_repository.list_by_role_ids(role_ids=[role_id])
        tree = build_menu_tree(menus, 0)
        logger.debug(f"Menu tree built: role_id={role_id}, nodes={count_tree_nodes(tree)}")
        return tree

    async def get_menus_by_role_ids(self, role_ids: Sequence[int]) -> List[MenuTreeNode]:
        """多个角色菜单的并集（去重）构建的树"""
        menus = await self.menu_repository.list_by_role_ids(role_ids=role_ids)
        return build_menu_tree(menus, 0)
