"""
代码生成器 Schemas
backend/app/schemas/code_generator.py
与前端约定使用snake_case字段（table_name/struct_name/package_name...）
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.db_inspector import ColumnInfo


class FieldConfig(BaseModel):
    column_name: str
    field_name: str = ""
    field_type: str = ""
    json_tag: str = ""
    py_type: str = "str"
    sa_type: str = "String"
    ts_type: str = "string"
    form_type: str = "input"
    label: str = ""
    comment: str = ""
    searchable: bool = False
    nullable: bool = True
    is_primary_key: bool = False


class GenerateOptions(BaseModel):
    generate_model: bool = True
    generate_schema: bool = True
    generate_service: bool = True
    generate_api: bool = True
    generate_frontend_types: bool = True
    generate_frontend_api: bool = True
    generate_frontend_page: bool = True


class GenerateConfig(BaseModel):
    table_name: str = ""
    struct_name: str = ""
    package_name: str = ""
    frontend_path: str = "frontend/src"
    table_comment: str = ""
    fields: List[FieldConfig] = Field(default_factory=list)
    options: GenerateOptions = Field(default_factory=GenerateOptions)
    router_path: Optional[str] = None


class TableMetadata(BaseModel):
    table_name: str
    table_comment: str = ""
    columns: List[ColumnInfo] = Field(default_factory=list)


class CreateTableIn(BaseModel):
    table_name: str = Field(..., min_length=1)
    fields: List[FieldConfig] = Field(default_factory=list)
