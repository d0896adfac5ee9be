"""
统一API响应模型
backend/app/schemas/responses.py
{code, data, msg}：code=0表示成功，非0表示失败且data为null
"""
from typing import TypeVar, Generic, Optional, List

from pydantic import BaseModel, Field

T = TypeVar('T')


class ApiResponse(BaseModel, Generic[T]):
    """API统一响应格式"""
    code: int = Field(default=0, description="响应代码（0-成功）")
    data: Optional[T] = Field(default=None, description="响应数据")
    msg: str = Field(default="success", description="响应消息")

    @classmethod
    def success(cls, data: T = None, msg: str = "success") -> 'ApiResponse[T]':
        """成功响应快捷方法"""
        return cls(code=0, data=data, msg=msg)

    @classmethod
    def fail(cls, msg: str, code: int = 1) -> 'ApiResponse[T]':
        """失败响应快捷方法（data固定为null）"""
        return cls(code=code, data=None, msg=msg)


class PageResult(BaseModel, Generic[T]):
    """分页结果"""
    list: List[T] = Field(default_factory=list)
    total: int = 0
