"""
用户相关的Pydantic Schemas
backend/app/schemas/sys_user.py
"""
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from app.schemas.base import BaseSchema, TimestampSchema, IDSchema, PageQuery
from app.schemas.sys_role import RoleOut


class UserBase(BaseSchema):
    username: str = Field(..., min_length=1, max_length=50, description="用户名", examples=["admin"])
    nickname: str = Field("", max_length=50, description="昵称")
    header_img: str = Field("", max_length=255, description="头像")
    phone: str = Field("", max_length=20, description="联系方式")
    email: Optional[EmailStr] = Field(None, description="邮箱地址")
    role_id: int = Field(..., gt=0, description="角色ID")
    active: bool = Field(True, description="是否启用")

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_to_none(cls, v):
        # 空字符串视为未填写
        if isinstance(v, str) and not v.strip():
            return None
        return v


class UserCreate(UserBase):
    password: str = Field(..., min_length=6, description="密码")


class UserUpdate(UserBase):
    id: int = Field(..., gt=0, description="用户ID")
    # 不传或传空字符串：保留原密码
    password: Optional[str] = Field(None, description="新密码（为空则不修改）")

    @field_validator("password")
    @classmethod
    def check_password(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 6:
            raise ValueError("password must be at least 6 characters")
        return v


class UserOut(UserBase, TimestampSchema, IDSchema):
    """响应模型，不包含密码"""
    username: str
    role_id: int
    nickname: Optional[str] = ""
    header_img: Optional[str] = ""
    phone: Optional[str] = ""
    role: Optional[RoleOut] = None


class UserListQuery(PageQuery):
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1, le=100)
    username: Optional[str] = None
    nickname: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    role_id: Optional[int] = None
    active: Optional[bool] = None


# ------------------------------
# 登录/令牌
# ------------------------------
class LoginIn(BaseSchema):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginOut(BaseSchema):
    access_token: str
    refresh_token: str
    user: UserOut


class RefreshTokenIn(BaseSchema):
    refresh_token: str = Field(..., min_length=1)


class TokenOut(BaseSchema):
    access_token: str


class TokenPayload(BaseSchema):
    """JWT载荷（键名即camelCase）"""
    user_id: int
    username: str = ""
    role_id: int
    type: str = "access"
    exp: Optional[int] = None


# ------------------------------
# 密码/状态
# ------------------------------
class ChangePasswordIn(BaseSchema):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class ResetPasswordIn(BaseSchema):
    user_id: int = Field(..., gt=0)
    new_password: str = Field(..., min_length=6)


class ToggleStatusIn(BaseSchema):
    user_id: int = Field(..., gt=0)
    active: bool
