"""
角色相关的Pydantic Schemas
backend/app/schemas/sys_role.py
"""
from typing import List, Literal

from pydantic import Field, field_validator

from app.schemas.base import BaseSchema, TimestampSchema, IDSchema, PageQuery


class RoleBase(BaseSchema):
    role_name: str = Field(..., min_length=1, max_length=50, description="角色名称", examples=["管理员"])
    role_key: str = Field(..., min_length=1, max_length=50, description="角色标识", examples=["admin"])
    data_scope: Literal["all", "dept", "self"] = Field("all", description="数据权限范围（仅存储）")
    sort: int = Field(0, description="显示顺序")
    status: bool = Field(True, description="角色状态")
    remark: str = Field("", max_length=255, description="备注")


class RoleCreate(RoleBase):
    pass


class RoleUpdate(RoleBase):
    id: int = Field(..., gt=0, description="角色ID")


class RoleOut(RoleBase, TimestampSchema, IDSchema):
    remark: str | None = ""


class RoleListQuery(PageQuery):
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1, le=100)


class AssignMenusIn(BaseSchema):
    role_id: int = Field(..., gt=0)
    menu_ids: List[int] = Field(default_factory=list)


class AssignApisIn(BaseSchema):
    """policies为[path, method]二元组列表"""
    role_id: int = Field(..., gt=0)
    policies: List[List[str]] = Field(default_factory=list)

    @field_validator("policies")
    @classmethod
    def check_pairs(cls, v: List[List[str]]) -> List[List[str]]:
        for pair in v:
            if len(pair) != 2 or not pair[0] or not pair[1]:
                raise ValueError("each policy must be a [path, method] pair")
        return v
