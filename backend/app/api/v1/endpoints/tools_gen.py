"""
代码生成器接口文件
backend/app/api/v1/endpoints/tools_gen.py
全部接口需要API访问权限
"""
from typing import Any

from dependency_injector.wiring import inject
from fastapi import APIRouter, Path

from app.api.deps import CodeGeneratorServiceDep, PermittedClaims
from app.core.exceptions import BadRequest
from app.schemas.code_generator import CreateTableIn, GenerateConfig
from app.schemas.responses import ApiResponse
from app.services.tools_code_generator_service import convert_column_to_field

router = APIRouter(prefix="/tools/gen", tags=["tools-gen"])


def _check_generate_config(config: GenerateConfig) -> None:
    """生成配置必填项校验"""
    for field_name in ("table_name", "struct_name", "package_name"):
        if not getattr(config, field_name).strip():
            raise BadRequest(detail=f"{field_name} is required")


@router.get(
    "/metadata/{table_name}",
    response_model=ApiResponse,
    summary="获取表元数据",
    description="返回列信息以及转换后的默认字段配置"
)
@inject
async def read_table_metadata(
        _claims: PermittedClaims,
        code_generator_service: CodeGeneratorServiceDep,
        table_name: str = Path(..., description="表名"),
) -> Any:
    metadata = await code_generator_service.get_table_metadata(table_name)
    data = metadata.model_dump()
    data["fields"] = [convert_column_to_field(c).model_dump() for c in metadata.columns]
    return ApiResponse.success(data=data)


@router.post(
    "/preview",
    response_model=ApiResponse,
    summary="预览生成代码",
    description="返回 {文件路径: 文件内容}，不写入磁盘"
)
@inject
async def preview_code(config: GenerateConfig, _claims: PermittedClaims, code_generator_service: CodeGeneratorServiceDep) -> Any:
    _check_generate_config(config)
    files = code_generator_service.preview_code(config)
    return ApiResponse.success(data=files)


@router.post(
    "/generate",
    response_model=ApiResponse,
    summary="生成代码并写入输出目录"
)
@inject
async def generate_code(config: GenerateConfig, _claims: PermittedClaims, code_generator_service: CodeGeneratorServiceDep) -> Any:
    _check_generate_config(config)
    files = code_generator_service.generate_code(config)
    try:
        written = code_generator_service.write_generated_code(files)
    except OSError as e:
        raise BadRequest(detail=f"failed to write files: {e}")
    return ApiResponse.success(data={"files": written, "count": len(written)})


@router.post(
    "/table",
    response_model=ApiResponse,
    summary="按字段配置建表",
    description="自动追加id主键与created_at/updated_at/deleted_at列"
)
@inject
async def create_table(body: CreateTableIn, _claims: PermittedClaims, code_generator_service: CodeGeneratorServiceDep) -> Any:
    await code_generator_service.create_table(body.table_name, body.fields)
    return ApiResponse.success(msg="table created successfully")
