"""
用户模块业务层
backend/app/services/sys_user_service.py
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from app.core.exceptions import ResourceNotFound, BadRequest
from app.core.security import create_token_pair, get_password_hash, verify_password
from app.models import SysUser
from app.repositories.sys_role_repository import RoleRepository
from app.repositories.sys_user_repository import UserRepository
from app.schemas.sys_user import UserCreate, UserUpdate, UserListQuery

logger = logging.getLogger(__name__)


class UserService:
    """用户Service层：仅管业务逻辑，事务由Repo上下文管理"""
    def __init__(self, user_repository: UserRepository, role_repository: RoleRepository):
        self.user_repository = user_repository
        self.role_repository = role_repository

    # ------------------------------
    # 核心业务：登录
    # ------------------------------
    async def login(self, username: str, password: str) -> Tuple[str, str, SysUser]:
        """
        用户登录：
        1. 用户不存在与密码错误返回同一提示，防止用户名枚举
        2. 账号被禁用单独提示
        3. 成功后签发访问令牌和刷新令牌
        """
        user = await self.user_repository.get_by_username(username=username)
        if not user:
            raise BadRequest(detail="invalid username or password")

        if not user.active:
            raise BadRequest(detail="user account is disabled")

        if not verify_password(password, user.password):
            raise BadRequest(detail="invalid username or password")

        access_token, refresh_token = create_token_pair(user.id, user.username, user.role_id)
        logger.info(f"User logged in: id={user.id}, username={user.username}")
        return access_token, refresh_token, user

    # ------------------------------
    # 核心业务：创建用户
    # ------------------------------
    async def create_user(self, user_in: UserCreate) -> SysUser:
        """创建用户（用户名唯一，角色必须存在，密码哈希后存储）"""
        # 1. 业务校验1：用户名唯一性（先查后写，唯一索引兜底并发竞态）
        if await self.user_repository.username_exists(username=user_in.username):
            raise BadRequest(detail="username already exists")

        # 2. 业务校验2：角色存在
        await self._ensure_role_exists(user_in.role_id)

        # 3. 密码加密（Service层负责，Repo不碰密码逻辑）
        data = user_in.model_dump(exclude={"password"})
        data["email"] = data.get("email") or ""
        data["password"] = get_password_hash(user_in.password)

        async with self.user_repository.transaction() as session:
            new_user = await self.user_repository.create(data=data, session=session)
        logger.info(f"User created: id={new_user.id}, username={new_user.username}")
        return new_user

    # ------------------------------
    # 更新用户
    # ------------------------------
    async def update_user(self, user_in: UserUpdate) -> SysUser:
        """
        更新用户：
        - 允许改名（与其他用户比较唯一性）
        - password未传或为空字符串时保留原密码哈希
        """
        user = await self.get_user_by_id(user_id=user_in.id)

        if user_in.username != user.username:
            if await self.user_repository.username_exists(username=user_in.username, exclude_id=user.id):
                raise BadRequest(detail="username already exists")

        if user_in.role_id != user.role_id:
            await self._ensure_role_exists(user_in.role_id)

        data = user_in.model_dump(exclude={"id", "password"})
        data["email"] = data.get("email") or ""
        if user_in.password:
            data["password"] = get_password_hash(user_in.password)

        async with self.user_repository.transaction() as session:
            updated_user = await self.user_repository.update(user_id=user.id, data=data, session=session)
        return updated_user

    # ------------------------------
    # 删除用户（软删除）
    # ------------------------------
    async def delete_user(self, user_id: int) -> None:
        await self.get_user_by_id(user_id=user_id)
        async with self.user_repository.transaction() as session:
            await self.user_repository.soft_delete(user_id=user_id, session=session)
        logger.info(f"User soft deleted: id={user_id}")

    # ------------------------------
    # 查询
    # ------------------------------
    async def get_user_by_id(self, user_id: int) -> SysUser:
        """按ID查询用户（预加载角色，不存在则抛异常）"""
        user = await self.user_repository.get_by_id(user_id=user_id)
        if not user:
            raise ResourceNotFound(detail="user not found")
        return user

    async def get_user_list(self, query: UserListQuery) -> Tuple[List[SysUser], int]:
        """
        分页查询用户列表
        username/nickname/phone/email为子串匹配，role_id/active为精确匹配
        """
        filters: Dict[str, Any] = {
            "username__like": query.username,
            "nickname__like": query.nickname,
            "phone__like": query.phone,
            "email__like": query.email,
            "role_id__eq": query.role_id,
            "active__is": query.active,
        }
        return await self.user_repository.list_page(
            offset=query.offset,
            limit=query.page_size,
            filters=filters,
        )

    # ------------------------------
    # 密码/状态
    # ------------------------------
    async def change_password(self, user_id: int, old_password: str, new_password: str) -> None:
        """修改本人密码（校验旧密码）"""
        user = await self.get_user_by_id(user_id=user_id)
        if not verify_password(old_password, user.password):
            raise BadRequest(detail="old password is incorrect")
        await self._save_password(user_id, new_password)

    async def reset_password(self, user_id: int, new_password: str) -> None:
        """管理员重置密码（不校验旧密码，调用方负责鉴权）"""
        await self.get_user_by_id(user_id=user_id)
        await self._save_password(user_id, new_password)

    async def toggle_user_status(self, user_id: int, active: bool) -> None:
        await self.get_user_by_id(user_id=user_id)
        async with self.user_repository.transaction() as session:
            await self.user_repository.update(user_id=user_id, data={"active": active}, session=session)

    # ------------------------------
    # 内部方法
    # ------------------------------
    async def _save_password(self, user_id: int, new_password: str) -> None:
        async with self.user_repository.transaction() as session:
            await self.user_repository.update(
                user_id=user_id,
                data={"password": get_password_hash(new_password)},
                session=session,
            )

    async def _ensure_role_exists(self, role_id: Optional[int]) -> None:
        role = await self.role_repository.get_by_id(role_id=role_id)
        if not role:
            raise ResourceNotFound(detail="role not found")
