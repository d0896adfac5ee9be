"""
菜单模块接口文件
backend/app/api/v1/endpoints/menus.py
增删改查接口需要API访问权限；菜单树/前端路由仅需登录
"""
from typing import Any

from dependency_injector.wiring import inject
from fastapi import APIRouter, Path, Query

from app.api.deps import CurrentClaims, MenuServiceDep, PermittedClaims, parse_path_id
from app.schemas.responses import ApiResponse
from app.schemas.sys_menu import MenuCreate, MenuOut, MenuUpdate
from app.services.route_generator import generate_routes

router = APIRouter(prefix="/menu", tags=["menu"])


@router.post(
    "",
    response_model=ApiResponse,
    summary="创建菜单"
)
@inject
async def create_menu(menu_in: MenuCreate, _claims: PermittedClaims, menu_service: MenuServiceDep) -> Any:
    menu = await menu_service.create_menu(menu_in)
    return ApiResponse.success(data=MenuOut.model_validate(menu))


@router.put(
    "",
    response_model=ApiResponse,
    summary="更新菜单"
)
@inject
async def update_menu(menu_in: MenuUpdate, _claims: PermittedClaims, menu_service: MenuServiceDep) -> Any:
    menu = await menu_service.update_menu(menu_in)
    return ApiResponse.success(data=MenuOut.model_validate(menu))


@router.get(
    "/all",
    response_model=ApiResponse,
    summary="获取全部菜单（扁平）"
)
@inject
async def read_all_menus(_claims: PermittedClaims, menu_service: MenuServiceDep) -> Any:
    menus = await menu_service.get_all_menus()
    return ApiResponse.success(data=[MenuOut.model_validate(m) for m in menus])


@router.get(
    "/tree",
    response_model=ApiResponse,
    summary="获取菜单树",
    description="roleId为0时返回全部菜单；hidden菜单同样返回"
)
@inject
async def read_menu_tree(
        _claims: CurrentClaims,
        menu_service: MenuServiceDep,
        role_id: int = Query(0, alias="roleId", ge=0, description="角色ID（0表示获取所有菜单）"),
) -> Any:
    tree = await menu_service.get_menu_tree(role_id)
    return ApiResponse.success(data=tree)


@router.get(
    "/routes",
    response_model=ApiResponse,
    summary="当前用户的前端路由",
    description="按当前角色的菜单树生成前端路由描述"
)
@inject
async def read_routes(claims: CurrentClaims, menu_service: MenuServiceDep) -> Any:
    tree = await menu_service.get_menu_tree(claims.role_id)
    return ApiResponse.success(data=generate_routes(tree))


@router.get(
    "/{id}",
    response_model=ApiResponse,
    summary="获取菜单详情"
)
@inject
async def read_menu(
        _claims: PermittedClaims,
        menu_service: MenuServiceDep,
        id: str = Path(..., description="菜单ID"),
) -> Any:
    menu = await menu_service.get_menu_by_id(parse_path_id(id, "menu"))
    return ApiResponse.success(data=MenuOut.model_validate(menu))


@router.delete(
    "/{id}",
    response_model=ApiResponse,
    summary="删除菜单",
    description="存在子菜单时拒绝删除"
)
@inject
async def delete_menu(
        _claims: PermittedClaims,
        menu_service: MenuServiceDep,
        id: str = Path(..., description="菜单ID"),
) -> Any:
    await menu_service.delete_menu(parse_path_id(id, "menu"))
    return ApiResponse.success(msg="menu deleted successfully")
