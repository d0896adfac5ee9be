"""
初始化基础数据
backend/app/scripts/init_data.py
1. 建表（Base.metadata.create_all）
2. 管理员角色 admin / 管理员用户 admin（密码admin123）
3. 默认菜单：Dashboard、System（User/Role/Menu）、Tools（CodeGenerator/DbInspector）
4. 全部菜单关联到管理员角色，并写入管理员通配API规则
已存在admin角色时跳过数据初始化（可重复执行）
"""
import asyncio
import logging
from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import insert, select

from app.core.config import settings
from app.core.logger import init_global_logger
from app.core.security import get_password_hash
from app.di.container import create_db_engine
from app.models import Base, SysCasbinRule, SysMenu, SysRole, SysUser, sys_role_menus
from app.models.sys_role import DATA_SCOPE_ALL
from app.services.sys_policy_service import SUPER_ROLE_KEY

logger = logging.getLogger(__name__)

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"

TOP_MENUS: List[Dict[str, Any]] = [
    {
        "path": "/dashboard", "name": "Dashboard", "component": "dashboard", "sort": 1,
        "meta": {"icon": "HomeIcon", "title": "仪表盘", "hidden": False, "keep_alive": True},
        "btn_perms": [],
    },
    {
        "path": "/system", "name": "System", "component": "Layout", "sort": 2,
        "meta": {"icon": "CogIcon", "title": "系统管理", "hidden": False, "keep_alive": True},
        "btn_perms": [],
    },
    {
        "path": "/tools", "name": "Tools", "component": "Layout", "sort": 3,
        "meta": {"icon": "WrenchIcon", "title": "工具箱", "hidden": False, "keep_alive": True},
        "btn_perms": [],
    },
]

# 父菜单name → 子菜单
SUB_MENUS: Dict[str, List[Dict[str, Any]]] = {
    "System": [
        {
            "path": "/system/user", "name": "User", "component": "system/user", "sort": 1,
            "meta": {"icon": "UserIcon", "title": "用户管理", "hidden": False, "keep_alive": True},
            "btn_perms": ["user:create", "user:update", "user:delete"],
        },
        {
            "path": "/system/role", "name": "Role", "component": "system/role", "sort": 2,
            "meta": {"icon": "ShieldCheckIcon", "title": "角色管理", "hidden": False, "keep_alive": True},
            "btn_perms": ["role:create", "role:update", "role:delete"],
        },
        {
            "path": "/system/menu", "name": "Menu", "component": "system/menu", "sort": 3,
            "meta": {"icon": "Bars3Icon", "title": "菜单管理", "hidden": False, "keep_alive": True},
            "btn_perms": ["menu:create", "menu:update", "menu:delete"],
        },
    ],
    "Tools": [
        {
            "path": "/tools/code-generator", "name": "CodeGenerator", "component": "tools/code-generator", "sort": 1,
            "meta": {"icon": "CodeBracketIcon", "title": "代码生成器", "hidden": False, "keep_alive": True},
            "btn_perms": ["code:generate"],
        },
        {
            "path": "/tools/db-inspector", "name": "DbInspector", "component": "tools/db-inspector", "sort": 2,
            "meta": {"icon": "CircleStackIcon", "title": "数据库检查器", "hidden": False, "keep_alive": True},
            "btn_perms": ["db:inspect"],
        },
    ],
}


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("数据表检查/创建完成")


async def seed_data(session: AsyncSession) -> bool:
    """
    写入基础数据（调用方负责提交事务）

    Returns:
        True表示本次写入了数据，False表示已初始化过
    """
    result = await session.execute(select(SysRole).where(SysRole.role_key == SUPER_ROLE_KEY))
    if result.scalars().first():
        logger.info("基础数据已存在，跳过初始化")
        return False

    # 1. 管理员角色
    admin_role = SysRole(
        role_name="Administrator",
        role_key=SUPER_ROLE_KEY,
        data_scope=DATA_SCOPE_ALL,
        sort=1,
        status=True,
        remark="系统默认超级管理员角色",
    )
    session.add(admin_role)
    await session.flush()

    # 2. 管理员用户
    session.add(SysUser(
        username=ADMIN_USERNAME,
        password=get_password_hash(ADMIN_PASSWORD),
        nickname="系统管理员",
        email="",
        role_id=admin_role.id,
        active=True,
    ))

    # 3. 菜单（先顶级，再子菜单）
    menus: List[SysMenu] = [SysMenu(parent_id=0, **item) for item in TOP_MENUS]
    session.add_all(menus)
    await session.flush()

    parents = {menu.name: menu.id for menu in menus}
    sub_menus = [
        SysMenu(parent_id=parents[parent_name], **item)
        for parent_name, items in SUB_MENUS.items()
        for item in items
    ]
    session.add_all(sub_menus)
    await session.flush()
    menus.extend(sub_menus)

    # 4. 全部菜单关联管理员角色 + 通配API规则
    await session.execute(
        insert(sys_role_menus).values([{"role_id": admin_role.id, "menu_id": m.id} for m in menus])
    )
    session.add(SysCasbinRule(v0=SUPER_ROLE_KEY, v1="/api/v1/*", v2="*"))

    logger.info(f"基础数据初始化完成 | 角色：1 | 用户：1 | 菜单：{len(menus)}")
    return True


async def init_data(engine: AsyncEngine) -> bool:
    await create_tables(engine)
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        async with session.begin():
            return await seed_data(session)


async def main() -> None:
    engine = create_db_engine(settings.SQLALCHEMY_DATABASE_URI, echo=settings.DB_ECHO)
    try:
        created = await init_data(engine)
    finally:
        await engine.dispose()
    if created:
        logger.info(f"管理员账号：{ADMIN_USERNAME} / {ADMIN_PASSWORD}")


def run() -> None:
    """命令行入口（k-admin-init-data）"""
    init_global_logger()
    asyncio.run(main())


if __name__ == "__main__":
    run()
