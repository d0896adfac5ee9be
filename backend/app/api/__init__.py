"""
API模块统一入口
backend/app/api/__init__.py
"""
from fastapi import APIRouter

from app.api.v1.endpoints import dashboard, menus, roles, tools_db, tools_gen, users

api_router = APIRouter()
api_router.include_router(users.router)
api_router.include_router(roles.router)
api_router.include_router(menus.router)
api_router.include_router(dashboard.router)
api_router.include_router(tools_db.router)
api_router.include_router(tools_gen.router)
