"""
DI容器
项目核心框架文件
backend/app/di/container.py
依赖链：数据库引擎 → 会话工厂 → Repo → Service；Redis客户端 → RedisService
"""
import logging
from typing import Optional

import redis.asyncio as redis
from dependency_injector import containers, providers
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine, AsyncSession

from app.core.casbin_enforcer import PolicyEnforcer
from app.core.config import settings
from app.repositories.sys_casbin_rule_repository import CasbinRuleRepository
from app.repositories.sys_menu_repository import MenuRepository
from app.repositories.sys_role_repository import RoleRepository
from app.repositories.sys_user_repository import UserRepository
from app.services.redis_service import RedisService
from app.services.sys_auth_service import AuthService
from app.services.sys_dashboard_service import DashboardService, HealthService
from app.services.sys_menu_service import MenuService
from app.services.sys_policy_service import PolicyService
from app.services.sys_role_service import RoleService
from app.services.sys_user_service import UserService
from app.services.tools_code_generator_service import CodeGeneratorService
from app.services.tools_db_inspector_service import DBInspectorService

logger = logging.getLogger(__name__)


# ------------------------------
# 引擎/客户端工厂
# ------------------------------
def enable_sqlite_foreign_keys(engine: AsyncEngine) -> AsyncEngine:
    """SQLite默认不校验外键，每个新连接上开启"""
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def create_db_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """创建异步引擎（SQLite不支持连接池参数）"""
    if database_url.startswith("sqlite"):
        return enable_sqlite_foreign_keys(create_async_engine(database_url, echo=echo))
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=settings.DB_POOL_PRE_PING,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )


def create_redis_client() -> Optional[redis.Redis]:
    """Redis客户端（未启用时返回None，由RedisService降级处理）"""
    if not settings.REDIS_ENABLED:
        logger.info("Redis未启用，令牌黑名单与限流不可用")
        return None
    return redis.from_url(
        settings.REDIS_URL,
        encoding=settings.REDIS_ENCODING,
        decode_responses=settings.REDIS_DECODE_RESPONSES,
        max_connections=settings.REDIS_MAX_CONNECTIONS,
        socket_keepalive=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_CONNECT_TIMEOUT,
    )


class Container(containers.DeclarativeContainer):
    # 0. 模块扫描：需要注入Service的API模块
    wiring_config = containers.WiringConfiguration(
        modules=[
            "app.api.deps",
            "app.api.v1.endpoints.users",
            "app.api.v1.endpoints.roles",
            "app.api.v1.endpoints.menus",
            "app.api.v1.endpoints.dashboard",
            "app.api.v1.endpoints.tools_db",
            "app.api.v1.endpoints.tools_gen",
            "app.api.v1.endpoints.health",
        ]
    )

    # 1. 底层：数据库引擎（单例，全局唯一）
    async_engine = providers.Singleton(
        create_db_engine,
        database_url=settings.SQLALCHEMY_DATABASE_URI,
        echo=settings.DB_ECHO,
    )

    # 2. 中层：会话工厂（单例）
    async_session_factory = providers.Singleton(
        async_sessionmaker,
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    # 3. Redis客户端 + 服务（单例，连接池全局复用）
    redis_client = providers.Singleton(create_redis_client)
    redis_service = providers.Singleton(
        RedisService,
        redis_client=redis_client,
    )

    # 3.1 Casbin执行器（单例，进程内策略缓存）
    policy_enforcer = providers.Singleton(PolicyEnforcer)

    # 4. Repo层：注入会话工厂
    user_repository = providers.Factory(
        UserRepository,
        async_session_factory=async_session_factory,
    )
    role_repository = providers.Factory(
        RoleRepository,
        async_session_factory=async_session_factory,
    )
    menu_repository = providers.Factory(
        MenuRepository,
        async_session_factory=async_session_factory,
    )
    casbin_rule_repository = providers.Factory(
        CasbinRuleRepository,
        async_session_factory=async_session_factory,
    )

    # 5. Service层：注入Repo
    user_service = providers.Factory(
        UserService,
        user_repository=user_repository,
        role_repository=role_repository,
    )
    policy_service = providers.Factory(
        PolicyService,
        policy_enforcer=policy_enforcer,
        casbin_rule_repository=casbin_rule_repository,
        role_repository=role_repository,
    )
    role_service = providers.Factory(
        RoleService,
        role_repository=role_repository,
        menu_repository=menu_repository,
        user_repository=user_repository,
        policy_service=policy_service,
    )
    menu_service = providers.Factory(
        MenuService,
        menu_repository=menu_repository,
        role_repository=role_repository,
    )
    auth_service = providers.Factory(
        AuthService,
        redis_service=redis_service,
    )
    dashboard_service = providers.Factory(
        DashboardService,
        user_repository=user_repository,
        role_repository=role_repository,
        menu_repository=menu_repository,
    )
    health_service = providers.Factory(
        HealthService,
        async_session_factory=async_session_factory,
        redis_service=redis_service,
    )

    # 6. 工具模块：直接基于引擎
    db_inspector_service = providers.Factory(
        DBInspectorService,
        async_engine=async_engine,
    )
    code_generator_service = providers.Factory(
        CodeGeneratorService,
        db_inspector_service=db_inspector_service,
        async_engine=async_engine,
        output_dir=settings.CODEGEN_OUTPUT_DIR,
    )
