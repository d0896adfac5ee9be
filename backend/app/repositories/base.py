"""
数据访问层基类
backend/app/repositories/base.py
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker


class BaseRepository:
    """
    标准Repo层实现：
    1. 注入会话工厂，自主创建事务会话
    2. 事务上下文统一管理会话生命周期（创建→提交/回滚→关闭）
    3. 纯DB操作，无业务逻辑；写操作由Service传入事务会话
    """
    def __init__(self, async_session_factory: sessionmaker):
        self.async_session_factory = async_session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        session: AsyncSession = self.async_session_factory()
        try:
            await session.begin()
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
