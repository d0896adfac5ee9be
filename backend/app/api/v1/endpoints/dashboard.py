"""
仪表盘接口文件
backend/app/api/v1/endpoints/dashboard.py
"""
from typing import Any

from dependency_injector.wiring import inject
from fastapi import APIRouter

from app.api.deps import CurrentClaims, DashboardServiceDep
from app.schemas.responses import ApiResponse

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/stats",
    response_model=ApiResponse,
    summary="仪表盘统计",
    description="用户数（不含已删除）、角色数、菜单数、配置分组数"
)
@inject
async def get_dashboard_stats(_claims: CurrentClaims, dashboard_service: DashboardServiceDep) -> Any:
    stats = await dashboard_service.get_dashboard_stats()
    return ApiResponse.success(data=stats)
