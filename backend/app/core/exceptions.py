"""
核心异常处理配置文件
backend/app/core/exceptions.py
业务异常统一走响应信封：HTTP状态码固定200（认证失败除外，返回401），错误语义放在code字段
"""

from fastapi import HTTPException, status

# 信封错误码
CODE_FAIL = 1
CODE_UNAUTHORIZED = 401
CODE_FORBIDDEN = 403
CODE_INTERNAL_ERROR = 500


class AppException(HTTPException):
    """基础异常类"""
    def __init__(self, detail: str, code: int = CODE_FAIL, status_code: int = status.HTTP_200_OK):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code

    @property
    def msg(self) -> str:
        return self.detail


class ResourceNotFound(AppException):
    """资源不存在（role/user/menu not found）"""
    def __init__(self, detail: str):
        super().__init__(detail=detail)


class BadRequest(AppException):
    """参数错误/业务校验失败（重复键、被引用删除等）"""
    def __init__(self, detail: str):
        super().__init__(detail=detail)


class PermissionDenied(AppException):
    """权限不足"""
    def __init__(self, detail: str = "access denied"):
        super().__init__(detail=detail, code=CODE_FORBIDDEN)


class Unauthorized(AppException):
    """认证失败（唯一使用HTTP 401的场景）"""
    def __init__(self, detail: str = "token is invalid"):
        super().__init__(
            detail=detail,
            code=CODE_UNAUTHORIZED,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
