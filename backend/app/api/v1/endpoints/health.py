"""
健康检查接口文件
backend/app/api/v1/endpoints/health.py
挂载在根路径（/health），无需认证
"""
from typing import Any

from dependency_injector.wiring import inject
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.api.deps import HealthServiceDep

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    summary="健康检查",
    description="数据库与Redis连通性；任一依赖异常时返回HTTP 503"
)
@inject
async def health_check(health_service: HealthServiceDep) -> Any:
    healthy, health = await health_service.check()
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=health.model_dump(mode="json"),
    )
