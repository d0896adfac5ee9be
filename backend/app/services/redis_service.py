"""
Redis服务层（异步版本）
backend/app/services/redis_service.py
"""
import json
import logging
import time
import uuid
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.config import settings

logger = logging.getLogger(__name__)

BLACKLIST_PREFIX = "blacklist:"


class RedisService:
    """
    Redis服务层（异步）：封装Redis操作
    统一处理序列化、错误处理、键前缀管理
    redis_client为None表示未启用Redis：读操作返回空值，写操作返回False
    """

    def __init__(self, redis_client: Optional[redis.Redis]):
        self.redis = redis_client
        self.key_prefix = settings.REDIS_KEY_PREFIX

    @property
    def enabled(self) -> bool:
        return self.redis is not None

    def _make_key(self, key: str) -> str:
        """添加统一前缀的键名"""
        return f"{self.key_prefix}{key}"

    @staticmethod
    def _serialize(value: Any) -> str:
        return json.dumps(value, default=str)

    @staticmethod
    def _deserialize(value: Any) -> Any:
        if value is None:
            return None
        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return value

    # ==================== 基础操作 ====================

    async def set(self, key: str, value: Any, expire_seconds: Optional[int] = None) -> bool:
        """设置键值（支持过期时间）"""
        if not self.enabled:
            return False
        try:
            full_key = self._make_key(key)
            if expire_seconds:
                return bool(await self.redis.setex(full_key, expire_seconds, self._serialize(value)))
            return bool(await self.redis.set(full_key, self._serialize(value)))
        except RedisError as e:
            logger.error(f"Redis set error for key {key}: {e}")
            return False

    async def get(self, key: str) -> Any:
        if not self.enabled:
            return None
        try:
            return self._deserialize(await self.redis.get(self._make_key(key)))
        except RedisError as e:
            logger.error(f"Redis get error for key {key}: {e}")
            return None

    async def delete(self, *keys: str) -> int:
        """删除一个或多个键"""
        if not self.enabled or not keys:
            return 0
        try:
            return await self.redis.delete(*[self._make_key(key) for key in keys])
        except RedisError as e:
            logger.error(f"Redis delete error for keys {keys}: {e}")
            return 0

    async def exists(self, key: str) -> bool:
        if not self.enabled:
            return False
        try:
            return bool(await self.redis.exists(self._make_key(key)))
        except RedisError as e:
            logger.error(f"Redis exists error for key {key}: {e}")
            return False

    # ==================== 令牌黑名单 ====================

    async def add_token_to_blacklist(self, token: str, expire_seconds: int) -> bool:
        """令牌加入黑名单，TTL为令牌剩余有效期（已过期的令牌无需拉黑）"""
        if expire_seconds <= 0:
            return True
        return await self.set(f"{BLACKLIST_PREFIX}{token}", 1, expire_seconds)

    async def is_token_blacklisted(self, token: str) -> bool:
        return await self.exists(f"{BLACKLIST_PREFIX}{token}")

    # ==================== 限流 ====================

    async def check_rate_limit(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """
        滑动窗口限流（有序集合，score为请求时间戳）：
        1. 移除窗口外的旧记录
        2. 统计窗口内请求数，达到上限则拒绝
        3. 记录本次请求并设置键过期时间（窗口的2倍）

        Raises:
            RedisError: Redis操作失败，由调用方决定是否放行
        """
        if not self.enabled:
            return True
        full_key = self._make_key(key)
        now = time.time()
        await self.redis.zremrangebyscore(full_key, 0, now - window_seconds)
        count = await self.redis.zcard(full_key)
        if count >= max_requests:
            return False
        await self.redis.zadd(full_key, {f"{now}:{uuid.uuid4().hex}": now})
        await self.redis.expire(full_key, window_seconds * 2)
        return True

    # ==================== 健康检查 ====================

    async def ping(self) -> bool:
        """检查Redis连接是否正常"""
        if not self.enabled:
            return False
        try:
            return bool(await self.redis.ping())
        except (RedisError, OSError):
            return False

    # ==================== 连接管理 ====================

    async def close(self):
        """关闭Redis连接"""
        if self.enabled:
            await self.redis.aclose()
