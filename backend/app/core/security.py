"""
权限相关核心文件
backend/app/core/security.py
- 密码加密/校验（bcrypt，截断到72字节）
- JWT令牌：访问令牌（分钟级过期）+ 刷新令牌（天级过期），载荷包含userId/username/roleId
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi.security import HTTPBearer
from jose import jwt, ExpiredSignatureError, JWTError
from passlib.context import CryptContext

from app.core.config import settings

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"

# ------------------------------
# 密码加密上下文
# ------------------------------
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS
)

# ------------------------------
# Bearer认证（auto_error=False：缺失时由依赖项返回统一的401信封）
# ------------------------------
bearer_scheme = HTTPBearer(auto_error=False, scheme_name="BearerAuth")


class TokenExpired(JWTError):
    """令牌已过期"""


class TokenInvalid(JWTError):
    """令牌无效（签名错误、格式错误、类型不符）"""


# ------------------------------
# 密码加密（截断到72字节）
# ------------------------------
def get_password_hash(password: str) -> str:
    """
    加密密码：
    1. 将字符串密码编码为UTF-8字节（处理中文/特殊字符）
    2. 截断到72字节（符合bcrypt限制）
    3. 哈希处理
    """
    password_bytes = password.encode("utf-8")[:72]
    return pwd_context.hash(password_bytes)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """明文密码按加密逻辑同样编码+截断后与哈希值比对"""
    plain_password_bytes = plain_password.encode("utf-8")[:72]
    try:
        return pwd_context.verify(plain_password_bytes, hashed_password)
    except ValueError:
        # 库中存储的哈希格式不可识别
        return False


# ------------------------------
# Token生成/解析
# ------------------------------
def _encode(claims: Dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = dict(claims)
    to_encode.update({
        "type": token_type,
        "iat": now,
        "nbf": now,
        "exp": now + expires_delta,
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def build_claims(user_id: int, username: str, role_id: int) -> Dict[str, Any]:
    return {"userId": user_id, "username": username, "roleId": role_id}


def create_access_token(
    user_id: int,
    username: str,
    role_id: int,
    expires_delta: Optional[timedelta] = None
) -> str:
    """创建访问令牌（Access Token）"""
    expires_delta = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(build_claims(user_id, username, role_id), TOKEN_TYPE_ACCESS, expires_delta)


def create_refresh_token(
    user_id: int,
    username: str,
    role_id: int,
    expires_delta: Optional[timedelta] = None
) -> str:
    """创建刷新令牌（Refresh Token）"""
    expires_delta = expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(build_claims(user_id, username, role_id), TOKEN_TYPE_REFRESH, expires_delta)


def create_token_pair(user_id: int, username: str, role_id: int) -> Tuple[str, str]:
    """登录成功后同时签发访问令牌和刷新令牌"""
    return (
        create_access_token(user_id, username, role_id),
        create_refresh_token(user_id, username, role_id),
    )


def decode_jwt_token(token: str, expected_type: Optional[str] = None) -> dict[str, Any]:
    """
    解码JWT令牌

    Raises:
        TokenExpired: 令牌已过期
        TokenInvalid: 令牌无效或类型不符
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError as e:
        raise TokenExpired(str(e)) from e
    except JWTError as e:
        raise TokenInvalid(str(e)) from e

    if "userId" not in payload or "roleId" not in payload:
        raise TokenInvalid("token claims are incomplete")
    if expected_type and payload.get("type") != expected_type:
        raise TokenInvalid(f"token is not a {expected_type} token")
    return payload


def refresh_access_token(refresh_token: str) -> str:
    """使用刷新令牌签发新的访问令牌"""
    payload = decode_jwt_token(refresh_token, expected_type=TOKEN_TYPE_REFRESH)
    return create_access_token(payload["userId"], payload.get("username", ""), payload["roleId"])


def token_remaining_seconds(payload: dict[str, Any]) -> int:
    """令牌剩余有效期（秒），用于黑名单TTL"""
    exp = payload.get("exp")
    if exp is None:
        return 0
    remaining = int(exp - datetime.now(timezone.utc).timestamp())
    return max(remaining, 0)
