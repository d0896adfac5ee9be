"""
仪表盘与健康检查Service层
backend/app/services/sys_dashboard_service.py
"""
import logging
from datetime import datetime
from typing import Dict, Tuple

from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.config import DEFAULT_TZ
from app.repositories.sys_menu_repository import MenuRepository
from app.repositories.sys_role_repository import RoleRepository
from app.repositories.sys_user_repository import UserRepository
from app.schemas.dashboard import DashboardStats, HealthOut
from app.services.redis_service import RedisService

logger = logging.getLogger(__name__)

# 可配置的系统设置分组数量（固定值）
CONFIG_GROUP_COUNT = 15


class DashboardService:
    def __init__(
            self,
            user_repository: UserRepository,
            role_repository: RoleRepository,
            menu_repository: MenuRepository):
        self.user_repository = user_repository
        self.role_repository = role_repository
        self.menu_repository = menu_repository

    async def get_dashboard_stats(self) -> DashboardStats:
        """统计用户数（不含已删除）、角色数、菜单数"""
        return DashboardStats(
            user_count=await self.user_repository.count_total(),
            role_count=await self.role_repository.count_total(),
            menu_count=await self.menu_repository.count_total(),
            config_count=CONFIG_GROUP_COUNT,
        )


class HealthService:
    """依赖健康检查：数据库（SELECT 1）+ Redis（启用时PING）"""
    def __init__(self, async_session_factory: async_sessionmaker, redis_service: RedisService):
        self.async_session_factory = async_session_factory
        self.redis_service = redis_service

    async def check(self) -> Tuple[bool, HealthOut]:
        services: Dict[str, str] = {}
        all_healthy = True

        try:
            async with self.async_session_factory() as session:
                await session.execute(text("SELECT 1"))
            services["database"] = "healthy"
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            services["database"] = f"unhealthy: {e}"
            all_healthy = False

        if self.redis_service.enabled:
            if await self.redis_service.ping():
                services["redis"] = "healthy"
            else:
                services["redis"] = "unhealthy: ping failed"
                all_healthy = False
        else:
            services["redis"] = "not configured"

        health = HealthOut(
            status="healthy" if all_healthy else "unhealthy",
            timestamp=datetime.now(DEFAULT_TZ),
            services=services,
        )
        return all_healthy, health
