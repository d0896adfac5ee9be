"""
SQLAlchemy Declarative Base
backend/app/models/base.py
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, func
from sqlalchemy.orm import declarative_base

# 创建DeclarativeBase实例
Base = declarative_base()


def int_pk_column():
    """生成自增整型主键列（0保留为"根/全部"的哨兵值）"""
    return Column(Integer, primary_key=True, autoincrement=True, comment='主键ID')


class TimestampMixin:
    """创建/更新时间（由ORM在写入时维护）"""
    created_at = Column(DateTime, default=datetime.now, server_default=func.now(), comment='创建时间')
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, comment='更新时间')


__all__ = ['Base', 'int_pk_column', 'TimestampMixin']
