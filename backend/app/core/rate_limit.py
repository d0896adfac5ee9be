"""
请求限流中间件
backend/app/core/rate_limit.py
滑动窗口限流（Redis有序集合），按客户端IP或令牌中的用户ID计数
Redis未启用或出错时放行请求，只记录日志
"""
import logging
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from app.core.security import TokenExpired, TokenInvalid, decode_jwt_token
from app.schemas.responses import ApiResponse
from app.services.redis_service import RedisService

logger = logging.getLogger(__name__)

CODE_TOO_MANY_REQUESTS = 429
RATE_LIMIT_MESSAGE = "too many requests, please try again later"


def get_client_ip(request: Request) -> str:
    """优先取代理头中的首个地址"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


def _user_id_from_request(request: Request) -> Optional[int]:
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token:
        return None
    try:
        return decode_jwt_token(token).get("userId")
    except (TokenExpired, TokenInvalid):
        return None


def get_rate_limit_key(request: Request, key_func: str) -> str:
    """
    限流键：
    - ip：rate_limit:ip:<客户端IP>
    - user：rate_limit:user:<userId>，无有效令牌时退回IP
    """
    if key_func == "user":
        user_id = _user_id_from_request(request)
        if user_id is not None:
            return f"rate_limit:user:{user_id}"
    return f"rate_limit:ip:{get_client_ip(request)}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
            self,
            app,
            redis_service_provider: Callable[[], RedisService],
            max_requests: int,
            window_seconds: int,
            key_func: str = "ip"):
        super().__init__(app)
        self.redis_service_provider = redis_service_provider
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.key_func = key_func

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        redis_service = self.redis_service_provider()
        if not redis_service.enabled:
            logger.warning("Rate limiting skipped: Redis is not enabled")
            return await call_next(request)

        key = get_rate_limit_key(request, self.key_func)
        try:
            allowed = await redis_service.check_rate_limit(key, self.max_requests, self.window_seconds)
        except (RedisError, OSError) as e:
            logger.error(f"Rate limit check failed: {e}")
            return await call_next(request)

        if not allowed:
            logger.warning(f"Rate limit exceeded: {key}")
            return JSONResponse(
                status_code=200,
                content=ApiResponse.fail(msg=RATE_LIMIT_MESSAGE, code=CODE_TOO_MANY_REQUESTS).model_dump(),
            )
        return await call_next(request)
