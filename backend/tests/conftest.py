"""
测试公共夹具
backend/tests/conftest.py
- 内存SQLite（aiosqlite + StaticPool，全部会话共用同一连接，开启外键校验）
- Redis使用AsyncMock客户端，由RedisService包装
- 接口测试通过覆盖DI容器Provider接入测试库
"""
import os

# 必须在导入app之前设置
os.environ.setdefault("KADMIN_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("KADMIN_REDIS_ENABLED", "false")
os.environ.setdefault("KADMIN_BCRYPT_ROUNDS", "4")
os.environ.setdefault("KADMIN_RATE_LIMIT_ENABLED", "false")

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.casbin_enforcer import PolicyEnforcer
from app.di.container import enable_sqlite_foreign_keys
from app.models import Base
from app.repositories.sys_casbin_rule_repository import CasbinRuleRepository
from app.repositories.sys_menu_repository import MenuRepository
from app.repositories.sys_role_repository import RoleRepository
from app.repositories.sys_user_repository import UserRepository
from app.schemas.sys_menu import MenuCreate, MenuMeta
from app.schemas.sys_role import RoleCreate
from app.schemas.sys_user import UserCreate
from app.services.redis_service import RedisService
from app.services.sys_auth_service import AuthService
from app.services.sys_dashboard_service import DashboardService, HealthService
from app.services.sys_menu_service import MenuService
from app.services.sys_policy_service import PolicyService
from app.services.sys_role_service import RoleService
from app.services.sys_user_service import UserService
from app.services.tools_code_generator_service import CodeGeneratorService
from app.services.tools_db_inspector_service import DBInspectorService


# ------------------------------
# 数据库
# ------------------------------
@pytest.fixture
async def engine():
    test_engine = enable_sqlite_foreign_keys(create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    ))
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


# ------------------------------
# Redis
# ------------------------------
@pytest.fixture
def redis_client():
    """模拟的redis.asyncio客户端：键默认不存在，写入成功"""
    client = AsyncMock()
    client.exists.return_value = 0
    client.setex.return_value = True
    client.set.return_value = True
    client.ping.return_value = True
    client.zcard.return_value = 0
    return client


@pytest.fixture
def redis_service(redis_client):
    return RedisService(redis_client=redis_client)


# ------------------------------
# Repo / Service
# ------------------------------
@pytest.fixture
def user_repository(session_factory):
    return UserRepository(async_session_factory=session_factory)


@pytest.fixture
def role_repository(session_factory):
    return RoleRepository(async_session_factory=session_factory)


@pytest.fixture
def menu_repository(session_factory):
    return MenuRepository(async_session_factory=session_factory)


@pytest.fixture
def casbin_rule_repository(session_factory):
    return CasbinRuleRepository(async_session_factory=session_factory)


@pytest.fixture
def user_service(user_repository, role_repository):
    return UserService(user_repository=user_repository, role_repository=role_repository)


@pytest.fixture
def policy_enforcer():
    return PolicyEnforcer()


@pytest.fixture
def policy_service(policy_enforcer, casbin_rule_repository, role_repository):
    return PolicyService(
        policy_enforcer=policy_enforcer,
        casbin_rule_repository=casbin_rule_repository,
        role_repository=role_repository,
    )


@pytest.fixture
def role_service(role_repository, menu_repository, user_repository, policy_service):
    return RoleService(
        role_repository=role_repository,
        menu_repository=menu_repository,
        user_repository=user_repository,
        policy_service=policy_service,
    )


@pytest.fixture
def menu_service(menu_repository, role_repository):
    return MenuService(menu_repository=menu_repository, role_repository=role_repository)


@pytest.fixture
def auth_service(redis_service):
    return AuthService(redis_service=redis_service)


@pytest.fixture
def dashboard_service(user_repository, role_repository, menu_repository):
    return DashboardService(
        user_repository=user_repository,
        role_repository=role_repository,
        menu_repository=menu_repository,
    )


@pytest.fixture
def health_service(session_factory, redis_service):
    return HealthService(async_session_factory=session_factory, redis_service=redis_service)


@pytest.fixture
def db_inspector_service(engine):
    return DBInspectorService(async_engine=engine)


@pytest.fixture
def code_generator_service(db_inspector_service, engine, tmp_path):
    return CodeGeneratorService(
        db_inspector_service=db_inspector_service,
        async_engine=engine,
        output_dir=str(tmp_path / "generated"),
    )


# ------------------------------
# 数据构造
# ------------------------------
@pytest.fixture
def make_role(role_service):
    async def _make(role_key: str, role_name: str = "", status: bool = True):
        return await role_service.create_role(RoleCreate(
            role_name=role_name or role_key.capitalize(),
            role_key=role_key,
            status=status,
        ))
    return _make


@pytest.fixture
def make_user(user_service):
    async def _make(username: str, role_id: int, password: str = "secret123", active: bool = True):
        return await user_service.create_user(UserCreate(
            username=username,
            password=password,
            role_id=role_id,
            active=active,
        ))
    return _make


@pytest.fixture
def make_menu(menu_service):
    async def _make(name: str, parent_id: int = 0, sort: int = 0, hidden: bool = False, **kwargs):
        return await menu_service.create_menu(MenuCreate(
            parent_id=parent_id,
            path=kwargs.pop("path", f"/{name.lower()}"),
            name=name,
            sort=sort,
            meta=MenuMeta(title=name, hidden=hidden),
            **kwargs,
        ))
    return _make


# ------------------------------
# 接口测试
# ------------------------------
@pytest.fixture
def app(engine, session_factory, redis_service):
    from app.main import create_app

    application = create_app()
    container = application.state.container
    container.async_engine.override(engine)
    container.async_session_factory.override(session_factory)
    container.redis_service.override(redis_service)
    yield application
    container.reset_override()
    container.unwire()


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client


@pytest.fixture
async def seeded(session_factory):
    """写入默认数据（admin/admin123 + 默认菜单）"""
    from app.scripts.init_data import seed_data

    async with session_factory() as session:
        async with session.begin():
            await seed_data(session)


@pytest.fixture
async def admin_headers(client, seeded):
    resp = await client.post("/api/v1/user/login", json={"username": "admin", "password": "admin123"})
    body = resp.json()
    assert body["code"] == 0, body
    return {"Authorization": f"Bearer {body['data']['accessToken']}"}
