"""
菜单相关的Pydantic Schemas
backend/app/schemas/sys_menu.py
"""
from typing import List, Optional

from pydantic import Field, field_validator

from app.schemas.base import BaseSchema, TimestampSchema, IDSchema


class MenuMeta(BaseSchema):
    """菜单元数据（存库为JSON，键为icon/title/hidden/keep_alive）"""
    icon: str = ""
    title: str = ""
    hidden: bool = False
    keep_alive: bool = False

    def to_db(self) -> dict:
        return self.model_dump(by_alias=False)


class MenuBase(BaseSchema):
    parent_id: int = Field(0, ge=0, description="父菜单ID（0表示顶级菜单）")
    path: str = Field(..., min_length=1, max_length=100, description="路由路径")
    name: str = Field(..., min_length=1, max_length=50, description="路由名称")
    component: str = Field("", max_length=100, description="前端组件标识")
    sort: int = Field(0, description="排序")
    meta: MenuMeta = Field(default_factory=MenuMeta, description="菜单元数据")
    btn_perms: List[str] = Field(default_factory=list, description="按钮权限标识")

    @field_validator("meta", "btn_perms", mode="before")
    @classmethod
    def none_to_empty(cls, v, info):
        # 历史数据中的NULL按空值处理
        if v is None:
            return {} if info.field_name == "meta" else []
        return v


class MenuCreate(MenuBase):
    pass


class MenuUpdate(MenuBase):
    id: int = Field(..., gt=0, description="菜单ID")


class MenuOut(MenuBase, TimestampSchema, IDSchema):
    path: str = ""
    name: str = ""
    component: Optional[str] = ""


class MenuTreeNode(MenuOut):
    """菜单树节点：children始终存在（叶子节点为空列表）"""
    children: List["MenuTreeNode"] = Field(default_factory=list)


MenuTreeNode.model_rebuild()
