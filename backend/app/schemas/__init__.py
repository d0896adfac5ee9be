# 功能：统一导出常用Schema模型，对外提供一致的导入入口
# 文件相对项目根目录路径：backend/app/schemas/__init__.py
from app.schemas.base import BaseSchema, TimestampSchema, IDSchema, PageQuery
from app.schemas.responses import ApiResponse, PageResult
from app.schemas.sys_menu import MenuMeta, MenuCreate, MenuUpdate, MenuOut, MenuTreeNode
from app.schemas.sys_role import RoleCreate, RoleUpdate, RoleOut, AssignMenusIn, AssignApisIn
from app.schemas.sys_user import (
    UserCreate, UserUpdate, UserOut, UserListQuery,
    LoginIn, LoginOut, TokenPayload,
    ChangePasswordIn, ResetPasswordIn, ToggleStatusIn,
)

__all__ = [
    # Base
    'BaseSchema', 'TimestampSchema', 'IDSchema', 'PageQuery',
    'ApiResponse', 'PageResult',
    # Menu
    'MenuMeta', 'MenuCreate', 'MenuUpdate', 'MenuOut', 'MenuTreeNode',
    # Role
    'RoleCreate', 'RoleUpdate', 'RoleOut', 'AssignMenusIn', 'AssignApisIn',
    # User
    'UserCreate', 'UserUpdate', 'UserOut', 'UserListQuery',
    'LoginIn', 'LoginOut', 'TokenPayload',
    'ChangePasswordIn', 'ResetPasswordIn', 'ToggleStatusIn',
]
