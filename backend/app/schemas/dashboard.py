"""
仪表盘/健康检查 Schemas
backend/app/schemas/dashboard.py
"""
from datetime import datetime
from typing import Dict

from app.schemas.base import BaseSchema


class DashboardStats(BaseSchema):
    user_count: int = 0
    role_count: int = 0
    menu_count: int = 0
    config_count: int = 0


class HealthOut(BaseSchema):
    status: str
    timestamp: datetime
    services: Dict[str, str]
