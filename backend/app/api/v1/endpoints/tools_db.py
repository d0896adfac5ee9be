"""
数据库检查器接口文件
backend/app/api/v1/endpoints/tools_db.py
全部接口需要API访问权限
"""
from typing import Any, Dict

from dependency_injector.wiring import inject
from fastapi import APIRouter, Body, Path, Query

from app.api.deps import DBInspectorServiceDep, PermittedClaims
from app.schemas.db_inspector import ExecuteSQLIn, TableDataOut
from app.schemas.responses import ApiResponse

router = APIRouter(prefix="/tools/db", tags=["tools-db"])


# ============ 表元数据 ============
@router.get(
    "/tables",
    response_model=ApiResponse,
    summary="获取全部表名"
)
@inject
async def read_tables(_claims: PermittedClaims, db_inspector_service: DBInspectorServiceDep) -> Any:
    tables = await db_inspector_service.get_tables()
    return ApiResponse.success(data=tables)


@router.get(
    "/tables/{table_name}/schema",
    response_model=ApiResponse,
    summary="获取表结构"
)
@inject
async def read_table_schema(
        _claims: PermittedClaims,
        db_inspector_service: DBInspectorServiceDep,
        table_name: str = Path(..., description="表名"),
) -> Any:
    columns = await db_inspector_service.get_table_schema(table_name)
    return ApiResponse.success(data=columns)


@router.get(
    "/tables/{table_name}/data",
    response_model=ApiResponse,
    summary="分页浏览表数据"
)
@inject
async def read_table_data(
        _claims: PermittedClaims,
        db_inspector_service: DBInspectorServiceDep,
        table_name: str = Path(..., description="表名"),
        page: int = Query(1, ge=1, description="页码"),
        page_size: int = Query(10, alias="pageSize", ge=1, le=1000, description="每页数量"),
) -> Any:
    rows, total = await db_inspector_service.get_table_data(table_name, page=page, page_size=page_size)
    return ApiResponse.success(data=TableDataOut(list=rows, total=total, page=page, page_size=page_size))


# ============ 记录增删改 ============
@router.post(
    "/tables/{table_name}/records",
    response_model=ApiResponse,
    summary="新增记录"
)
@inject
async def create_record(
        _claims: PermittedClaims,
        db_inspector_service: DBInspectorServiceDep,
        table_name: str = Path(..., description="表名"),
        data: Dict[str, Any] = Body(..., description="列名→值"),
) -> Any:
    await db_inspector_service.create_record(table_name, data)
    return ApiResponse.success(msg="record created successfully")


@router.put(
    "/tables/{table_name}/records/{id}",
    response_model=ApiResponse,
    summary="更新记录（按id列）"
)
@inject
async def update_record(
        _claims: PermittedClaims,
        db_inspector_service: DBInspectorServiceDep,
        table_name: str = Path(..., description="表名"),
        id: str = Path(..., description="记录ID"),
        data: Dict[str, Any] = Body(..., description="列名→值"),
) -> Any:
    await db_inspector_service.update_record(table_name, id, data)
    return ApiResponse.success(msg="record updated successfully")


@router.delete(
    "/tables/{table_name}/records/{id}",
    response_model=ApiResponse,
    summary="删除记录（按id列）"
)
@inject
async def delete_record(
        _claims: PermittedClaims,
        db_inspector_service: DBInspectorServiceDep,
        table_name: str = Path(..., description="表名"),
        id: str = Path(..., description="记录ID"),
) -> Any:
    await db_inspector_service.delete_record(table_name, id)
    return ApiResponse.success(msg="record deleted successfully")


# ============ SQL执行 ============
@router.post(
    "/execute",
    response_model=ApiResponse,
    summary="执行SQL",
    description="readOnly为true时只允许查询类语句；危险关键字一律拒绝"
)
@inject
async def execute_sql(body: ExecuteSQLIn, _claims: PermittedClaims, db_inspector_service: DBInspectorServiceDep) -> Any:
    result = await db_inspector_service.execute_sql(body.sql, body.read_only)
    return ApiResponse.success(data=result)
