"""
前端路由生成
backend/app/services/route_generator.py
菜单树 → 前端路由描述（供控制台动态注册路由）
hidden菜单同样生成路由，仅由前端在导航中隐藏
"""
from typing import Any, Dict, List

from app.schemas.sys_menu import MenuTreeNode

LAYOUT_COMPONENT = "Layout"
VIEWS_PREFIX = "views/"


def resolve_view(component: str) -> str:
    """组件标识 → 懒加载视图路径；Layout或空表示容器节点，无视图"""
    if not component or component == LAYOUT_COMPONENT:
        return ""
    return VIEWS_PREFIX + component.lstrip("/")


def generate_routes(tree: List[MenuTreeNode]) -> List[Dict[str, Any]]:
    routes: List[Dict[str, Any]] = []
    for node in tree:
        routes.append({
            "path": node.path,
            "name": node.name,
            "component": node.component or "",
            "view": resolve_view(node.component or ""),
            "meta": node.meta.model_dump(by_alias=True),
            "children": generate_routes(node.children),
        })
    return routes

