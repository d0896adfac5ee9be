"""
API 依赖项配置文件
backend/app/api/deps.py
- 认证：解析 Authorization: Bearer <token>，失败直接返回HTTP 401
- 授权：require_api_permission 按角色API规则校验当前请求路径/方法
- Service类型别名：简化API层注入写法
"""
from typing import Annotated, Optional

from dependency_injector.wiring import inject, Provide
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials

from app.core.exceptions import BadRequest, Unauthorized
from app.core.security import bearer_scheme
from app.di.container import Container
from app.schemas.sys_user import TokenPayload
from app.services.sys_auth_service import AuthService
from app.services.sys_dashboard_service import DashboardService, HealthService
from app.services.sys_menu_service import MenuService
from app.services.sys_policy_service import PolicyService
from app.services.sys_role_service import RoleService
from app.services.sys_user_service import UserService
from app.services.tools_code_generator_service import CodeGeneratorService
from app.services.tools_db_inspector_service import DBInspectorService


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    从Authorization头提取令牌

    Raises:
        Unauthorized: 请求头缺失或不是 Bearer <token> 格式
    """
    if not authorization:
        raise Unauthorized(detail="authorization token not provided")
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise Unauthorized(detail="authorization header format must be Bearer {token}")
    return parts[1]


def parse_path_id(raw: str, resource: str) -> int:
    """路径中的ID必须是非负整数，否则返回 invalid <resource> ID"""
    if not raw.isdigit():
        raise BadRequest(detail=f"invalid {resource} ID")
    return int(raw)


# ------------------------------
# 认证依赖：当前令牌载荷
# ------------------------------
@inject
async def get_current_claims(
    request: Request,
    # 仅用于OpenAPI文档展示认证方式，实际解析直接读取请求头
    _credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(Provide[Container.auth_service]),
) -> TokenPayload:
    """校验访问令牌，成功后把令牌和载荷挂到request.state"""
    token = extract_bearer_token(request.headers.get("Authorization"))
    claims = await auth_service.authenticate(token)
    request.state.access_token = token
    request.state.claims = claims
    return claims


CurrentClaims = Annotated[TokenPayload, Depends(get_current_claims)]


async def get_current_token(request: Request, _claims: CurrentClaims) -> str:
    return request.state.access_token


CurrentToken = Annotated[str, Depends(get_current_token)]


# ------------------------------
# 授权依赖：API访问规则
# ------------------------------
@inject
async def require_api_permission(
    request: Request,
    claims: CurrentClaims,
    policy_service: PolicyService = Depends(Provide[Container.policy_service]),
) -> TokenPayload:
    await policy_service.check_permission(claims.role_id, request.url.path, request.method)
    return claims


PermittedClaims = Annotated[TokenPayload, Depends(require_api_permission)]


# ------------------------------
# 类型别名（简化API层代码）
# ------------------------------
AuthServiceDep = Annotated[AuthService, Depends(Provide[Container.auth_service])]
UserServiceDep = Annotated[UserService, Depends(Provide[Container.user_service])]
RoleServiceDep = Annotated[RoleService, Depends(Provide[Container.role_service])]
MenuServiceDep = Annotated[MenuService, Depends(Provide[Container.menu_service])]
DashboardServiceDep = Annotated[DashboardService, Depends(Provide[Container.dashboard_service])]
HealthServiceDep = Annotated[HealthService, Depends(Provide[Container.health_service])]
DBInspectorServiceDep = Annotated[DBInspectorService, Depends(Provide[Container.db_inspector_service])]
CodeGeneratorServiceDep = Annotated[CodeGeneratorService, Depends(Provide[Container.code_generator_service])]
