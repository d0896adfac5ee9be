"""
数据库检查器 Schemas
backend/app/schemas/db_inspector.py
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.schemas.base import BaseSchema


class ColumnInfo(BaseModel):
    """列信息（字段名与前端约定一致，保持snake_case）"""
    name: str
    type: str
    nullable: bool = True
    key: str = ""
    default: Optional[str] = ""
    extra: str = ""
    comment: str = ""


class ExecuteSQLIn(BaseSchema):
    sql: str = Field(..., description="SQL语句")
    read_only: bool = Field(False, description="只读模式")


class TableDataOut(BaseSchema):
    list: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10
