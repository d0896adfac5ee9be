"""
认证Service层
backend/app/services/sys_auth_service.py
负责访问令牌校验（含黑名单）、刷新令牌换取访问令牌、登出拉黑
"""
import logging

from pydantic import ValidationError

from app.core.exceptions import BadRequest, Unauthorized
from app.core.security import (
    TOKEN_TYPE_ACCESS,
    TokenExpired,
    TokenInvalid,
    decode_jwt_token,
    refresh_access_token,
    token_remaining_seconds,
)
from app.schemas.sys_user import TokenPayload
from app.services.redis_service import RedisService

logger = logging.getLogger(__name__)


class AuthService:
    """认证Service层：不访问数据库，令牌载荷即当前用户身份"""
    def __init__(self, redis_service: RedisService):
        self.redis_service = redis_service

    # ------------------------------
    # 核心业务：访问令牌校验
    # ------------------------------
    async def authenticate(self, token: str) -> TokenPayload:
        """
        校验访问令牌：
        1. 解码（过期/无效分别提示）
        2. 检查黑名单
        3. 载荷转换为TokenPayload
        """
        try:
            payload = decode_jwt_token(token, expected_type=TOKEN_TYPE_ACCESS)
        except TokenExpired:
            raise Unauthorized(detail="token has expired")
        except TokenInvalid:
            raise Unauthorized(detail="token is invalid")

        if await self.redis_service.is_token_blacklisted(token):
            raise Unauthorized(detail="token has been revoked")

        try:
            return TokenPayload.model_validate(payload)
        except ValidationError:
            raise Unauthorized(detail="token is invalid")

    # ------------------------------
    # 刷新令牌
    # ------------------------------
    async def refresh(self, refresh_token: str) -> str:
        """用刷新令牌换取新的访问令牌"""
        if await self.redis_service.is_token_blacklisted(refresh_token):
            raise BadRequest(detail="refresh token has been revoked")
        try:
            return refresh_access_token(refresh_token)
        except TokenExpired:
            raise BadRequest(detail="refresh token has expired")
        except TokenInvalid:
            raise BadRequest(detail="invalid refresh token")

    # ------------------------------
    # 登出
    # ------------------------------
    async def logout(self, token: str) -> None:
        """访问令牌加入黑名单，TTL为剩余有效期"""
        try:
            payload = decode_jwt_token(token)
        except (TokenExpired, TokenInvalid):
            # 已失效的令牌无需拉黑
            return

        if not self.redis_service.enabled:
            raise BadRequest(detail="logout failed: token blacklist is unavailable")

        ok = await self.redis_service.add_token_to_blacklist(token, token_remaining_seconds(payload))
        if not ok:
            raise BadRequest(detail="logout failed: token blacklist is unavailable")
        logger.info(f"Token revoked for user {payload.get('userId')}")
