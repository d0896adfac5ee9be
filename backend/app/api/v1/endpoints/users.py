"""
用户模块接口文件
backend/app/api/v1/endpoints/users.py
公共接口：login / refresh-token
本人操作（info / logout / change-password）只需访问令牌；用户管理接口另需API访问权限
"""
from typing import Any, Optional

from dependency_injector.wiring import inject
from fastapi import APIRouter, Path, Query

from app.api.deps import (
    AuthServiceDep,
    CurrentClaims,
    CurrentToken,
    PermittedClaims,
    UserServiceDep,
    parse_path_id,
)
from app.core.exceptions import BadRequest
from app.schemas.responses import ApiResponse, PageResult
from app.schemas.sys_user import (
    ChangePasswordIn,
    LoginIn,
    LoginOut,
    RefreshTokenIn,
    ResetPasswordIn,
    ToggleStatusIn,
    TokenOut,
    UserCreate,
    UserListQuery,
    UserOut,
    UserUpdate,
)

router = APIRouter(prefix="/user", tags=["user"])


# ============ 登录/令牌 ============
@router.post(
    "/login",
    response_model=ApiResponse,
    summary="用户登录",
    description="用户名+密码登录，返回访问令牌、刷新令牌和用户信息"
)
@inject
async def login(login_in: LoginIn, user_service: UserServiceDep) -> Any:
    access_token, refresh_token, user = await user_service.login(login_in.username, login_in.password)
    return ApiResponse.success(data=LoginOut(
        access_token=access_token,
        refresh_token=refresh_token,
        user=UserOut.model_validate(user),
    ))


@router.post(
    "/refresh-token",
    response_model=ApiResponse,
    summary="刷新访问令牌"
)
@inject
async def refresh_token(token_in: RefreshTokenIn, auth_service: AuthServiceDep) -> Any:
    access_token = await auth_service.refresh(token_in.refresh_token)
    return ApiResponse.success(data=TokenOut(access_token=access_token))


@router.post(
    "/logout",
    response_model=ApiResponse,
    summary="退出登录",
    description="当前访问令牌加入黑名单，剩余有效期内不可再用"
)
@inject
async def logout(token: CurrentToken, auth_service: AuthServiceDep) -> Any:
    await auth_service.logout(token)
    return ApiResponse.success(msg="logout successfully")


@router.get(
    "/info",
    response_model=ApiResponse,
    summary="当前登录用户信息"
)
@inject
async def get_user_info(claims: CurrentClaims, user_service: UserServiceDep) -> Any:
    user = await user_service.get_user_by_id(claims.user_id)
    return ApiResponse.success(data=UserOut.model_validate(user))


# ============ 基础CRUD操作 ============
@router.post(
    "",
    response_model=ApiResponse,
    summary="创建用户"
)
@inject
async def create_user(user_in: UserCreate, _claims: PermittedClaims, user_service: UserServiceDep) -> Any:
    user = await user_service.create_user(user_in)
    return ApiResponse.success(data=UserOut.model_validate(user))


@router.put(
    "",
    response_model=ApiResponse,
    summary="更新用户",
    description="password为空时保留原密码"
)
@inject
async def update_user(user_in: UserUpdate, _claims: PermittedClaims, user_service: UserServiceDep) -> Any:
    user = await user_service.update_user(user_in)
    return ApiResponse.success(data=UserOut.model_validate(user))


@router.get(
    "/list",
    response_model=ApiResponse,
    summary="获取用户列表",
    description="分页获取用户列表：username/nickname/phone/email模糊匹配，roleId/active精确匹配"
)
@inject
async def read_users(
        _claims: PermittedClaims,
        user_service: UserServiceDep,
        page: int = Query(..., ge=1, description="页码"),
        page_size: int = Query(..., alias="pageSize", ge=1, le=100, description="每页数量"),
        username: Optional[str] = Query(None, description="用户名（模糊搜索）"),
        nickname: Optional[str] = Query(None, description="昵称（模糊搜索）"),
        phone: Optional[str] = Query(None, description="手机号（模糊搜索）"),
        email: Optional[str] = Query(None, description="邮箱（模糊搜索）"),
        role_id: Optional[int] = Query(None, alias="roleId", description="角色ID"),
        active: Optional[bool] = Query(None, description="是否激活"),
) -> Any:
    query = UserListQuery(
        page=page,
        page_size=page_size,
        username=username,
        nickname=nickname,
        phone=phone,
        email=email,
        role_id=role_id,
        active=active,
    )
    users, total = await user_service.get_user_list(query)
    return ApiResponse.success(data=PageResult[UserOut](
        list=[UserOut.model_validate(u) for u in users],
        total=total,
    ))


@router.get(
    "/{id}",
    response_model=ApiResponse,
    summary="获取用户详情"
)
@inject
async def get_user(
        _claims: PermittedClaims,
        user_service: UserServiceDep,
        id: str = Path(..., description="用户ID"),
) -> Any:
    user = await user_service.get_user_by_id(parse_path_id(id, "user"))
    return ApiResponse.success(data=UserOut.model_validate(user))


@router.delete(
    "/{id}",
    response_model=ApiResponse,
    summary="删除用户",
    description="软删除；不能删除当前登录用户"
)
@inject
async def delete_user(
        claims: PermittedClaims,
        user_service: UserServiceDep,
        id: str = Path(..., description="用户ID"),
) -> Any:
    user_id = parse_path_id(id, "user")
    if user_id == claims.user_id:
        raise BadRequest(detail="cannot delete current user")
    await user_service.delete_user(user_id)
    return ApiResponse.success(msg="user deleted successfully")


# ============ 密码/状态 ============
@router.post(
    "/change-password",
    response_model=ApiResponse,
    summary="修改本人密码"
)
@inject
async def change_password(body: ChangePasswordIn, claims: CurrentClaims, user_service: UserServiceDep) -> Any:
    await user_service.change_password(claims.user_id, body.old_password, body.new_password)
    return ApiResponse.success(msg="password changed successfully")


@router.post(
    "/reset-password",
    response_model=ApiResponse,
    summary="重置用户密码",
    description="管理员操作，不校验旧密码"
)
@inject
async def reset_password(body: ResetPasswordIn, _claims: PermittedClaims, user_service: UserServiceDep) -> Any:
    await user_service.reset_password(body.user_id, body.new_password)
    return ApiResponse.success(msg="password reset successfully")


@router.post(
    "/toggle-status",
    response_model=ApiResponse,
    summary="启用/禁用用户"
)
@inject
async def toggle_status(body: ToggleStatusIn, _claims: PermittedClaims, user_service: UserServiceDep) -> Any:
    await user_service.toggle_user_status(body.user_id, body.active)
    return ApiResponse.success(msg="user status updated successfully")
