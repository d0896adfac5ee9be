"""
角色模块接口文件
backend/app/api/v1/endpoints/roles.py
全部接口需要API访问权限（角色与API规则本身即授权数据）
"""
from typing import Any

from dependency_injector.wiring import inject
from fastapi import APIRouter, Path, Query

from app.api.deps import PermittedClaims, RoleServiceDep, parse_path_id
from app.schemas.responses import ApiResponse, PageResult
from app.schemas.sys_role import AssignApisIn, AssignMenusIn, RoleCreate, RoleListQuery, RoleOut, RoleUpdate

router = APIRouter(prefix="/role", tags=["role"])


@router.post(
    "",
    response_model=ApiResponse,
    summary="创建角色",
    description="roleKey必须唯一"
)
@inject
async def create_role(role_in: RoleCreate, _claims: PermittedClaims, role_service: RoleServiceDep) -> Any:
    role = await role_service.create_role(role_in)
    return ApiResponse.success(data=RoleOut.model_validate(role))


@router.put(
    "",
    response_model=ApiResponse,
    summary="更新角色"
)
@inject
async def update_role(role_in: RoleUpdate, _claims: PermittedClaims, role_service: RoleServiceDep) -> Any:
    role = await role_service.update_role(role_in)
    return ApiResponse.success(data=RoleOut.model_validate(role))


@router.get(
    "/list",
    response_model=ApiResponse,
    summary="获取角色列表",
    description="按sort升序、id降序分页"
)
@inject
async def read_roles(
        _claims: PermittedClaims,
        role_service: RoleServiceDep,
        page: int = Query(..., ge=1, description="页码"),
        page_size: int = Query(..., alias="pageSize", ge=1, le=100, description="每页数量"),
) -> Any:
    roles, total = await role_service.get_role_list(RoleListQuery(page=page, page_size=page_size))
    return ApiResponse.success(data=PageResult[RoleOut](
        list=[RoleOut.model_validate(r) for r in roles],
        total=total,
    ))


@router.post(
    "/assign-menus",
    response_model=ApiResponse,
    summary="分配菜单权限",
    description="整体替换角色的菜单集合；不存在的菜单ID会被忽略"
)
@inject
async def assign_menus(body: AssignMenusIn, _claims: PermittedClaims, role_service: RoleServiceDep) -> Any:
    await role_service.assign_menus(body.role_id, body.menu_ids)
    return ApiResponse.success(msg="menus assigned successfully")


@router.post(
    "/assign-apis",
    response_model=ApiResponse,
    summary="分配API权限",
    description="policies为[path, method]列表，整体替换"
)
@inject
async def assign_apis(body: AssignApisIn, _claims: PermittedClaims, role_service: RoleServiceDep) -> Any:
    await role_service.assign_apis(body.role_id, body.policies)
    return ApiResponse.success(msg="API permissions assigned successfully")


@router.get(
    "/{id}/menus",
    response_model=ApiResponse,
    summary="获取角色菜单ID列表"
)
@inject
async def get_role_menus(
        _claims: PermittedClaims,
        role_service: RoleServiceDep,
        id: str = Path(..., description="角色ID"),
) -> Any:
    menu_ids = await role_service.get_role_menus(parse_path_id(id, "role"))
    return ApiResponse.success(data=menu_ids)


@router.get(
    "/{id}/apis",
    response_model=ApiResponse,
    summary="获取角色API权限"
)
@inject
async def get_role_apis(
        _claims: PermittedClaims,
        role_service: RoleServiceDep,
        id: str = Path(..., description="角色ID"),
) -> Any:
    policies = await role_service.get_role_apis(parse_path_id(id, "role"))
    return ApiResponse.success(data=policies)


@router.get(
    "/{id}",
    response_model=ApiResponse,
    summary="获取角色详情"
)
@inject
async def get_role(
        _claims: PermittedClaims,
        role_service: RoleServiceDep,
        id: str = Path(..., description="角色ID"),
) -> Any:
    role = await role_service.get_role_by_id(parse_path_id(id, "role"))
    return ApiResponse.success(data=RoleOut.model_validate(role))


@router.delete(
    "/{id}",
    response_model=ApiResponse,
    summary="删除角色",
    description="存在关联用户时拒绝删除"
)
@inject
async def delete_role(
        _claims: PermittedClaims,
        role_service: RoleServiceDep,
        id: str = Path(..., description="角色ID"),
) -> Any:
    await role_service.delete_role(parse_path_id(id, "role"))
    return ApiResponse.success(msg="role deleted successfully")
