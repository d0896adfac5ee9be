"""
高级查询构建器模块 - 策略模式实现
backend/app/core/query_builder.py
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql import Select


# ==================== 策略基类 ====================
class BaseFilterStrategy(ABC):
    """过滤策略基类"""

    @abstractmethod
    def apply(self, query: Select, value: Any, **kwargs) -> Select:
        """应用过滤条件到查询"""
        pass

    def validate(self, value: Any) -> bool:
        """验证输入值是否有效"""
        return value is not None and value != ""


# ==================== 具体过滤策略 ====================
class EqualFilter(BaseFilterStrategy):
    """等于过滤"""

    def __init__(self, field: InstrumentedAttribute):
        self.field = field

    def apply(self, query: Select, value: Any, **kwargs) -> Select:
        return query.filter(self.field == value)


class LikeFilter(BaseFilterStrategy):
    """模糊匹配（不区分大小写）"""

    def __init__(self, field: InstrumentedAttribute):
        self.field = field

    def apply(self, query: Select, value: Any, **kwargs) -> Select:
        return query.filter(self.field.ilike(f"%{value}%"))


class BooleanFilter(BaseFilterStrategy):
    """布尔值过滤"""

    def __init__(self, field: InstrumentedAttribute):
        self.field = field

    def apply(self, query: Select, value: Any, **kwargs) -> Select:
        return query.filter(self.field == bool(value))


# ==================== 查询构建器 ====================
class QueryBuilder:
    """高级查询构建器"""

    def __init__(self, model_class):
        self.model_class = model_class
        self.strategies: Dict[str, BaseFilterStrategy] = {}
        self.conditions: List[Dict[str, Any]] = []

    def register_strategy(self, name: str, strategy: BaseFilterStrategy) -> 'QueryBuilder':
        """注册过滤策略"""
        self.strategies[name] = strategy
        return self

    def auto_register_field_strategies(self, fields_config: Dict[str, Dict[str, Any]]) -> 'QueryBuilder':
        """自动注册字段策略"""
        for field_name, config in fields_config.items():
            if not hasattr(self.model_class, field_name):
                continue
            field = getattr(self.model_class, field_name)

            if config.get('allow_equal', True):
                self.register_strategy(f"{field_name}__eq", EqualFilter(field))

            if config.get('allow_like', False):
                self.register_strategy(f"{field_name}__like", LikeFilter(field))

            if config.get('allow_bool', False):
                self.register_strategy(f"{field_name}__is", BooleanFilter(field))

        return self

    def filter(self, **kwargs) -> 'QueryBuilder':
        """添加过滤条件（支持链式调用），None和空串视为未筛选"""
        for key, value in kwargs.items():
            if value is not None and value != "":
                self.conditions.append({"key": key, "value": value})
        return self

    def build(self, base_query: Select) -> Select:
        """构建查询"""
        query = base_query

        for condition in self.conditions:
            key = condition["key"]
            value = condition["value"]

            if key in self.strategies:
                strategy = self.strategies[key]
                if strategy.validate(value):
                    query = strategy.apply(query, value)

        return query


# ==================== 分页查询构建器 ====================
class PaginatedQueryBuilder(QueryBuilder):
    """支持分页的查询构建器"""

    def __init__(self, model_class):
        super().__init__(model_class)
        self._offset = 0
        self._limit = 100
        self._order_by = []

    def paginate(self, offset: int = 0, limit: int = 100) -> 'PaginatedQueryBuilder':
        """设置分页参数"""
        self._offset = offset
        self._limit = limit
        return self

    def order_by(self, *clauses) -> 'PaginatedQueryBuilder':
        """设置排序（列表达式，如 SysUser.id.desc()）"""
        self._order_by.extend(clauses)
        return self

    def build_paginated(self, base_query: Select) -> Select:
        """构建分页查询"""
        query = self.build(base_query)

        if self._order_by:
            query = query.order_by(*self._order_by)

        if self._limit:
            query = query.limit(self._limit).offset(self._offset)

        return query


# ==================== 用户模块查询构建器工厂 ====================
def create_user_query_builder() -> PaginatedQueryBuilder:
    """
    创建用户列表查询构建器
    - username/nickname/phone/email：模糊匹配
    - role_id：精确匹配
    - active：布尔匹配
    默认按ID倒序
    """
    from app.models import SysUser

    builder = PaginatedQueryBuilder(SysUser)

    builder.auto_register_field_strategies({
        "username": {"allow_equal": False, "allow_like": True},
        "nickname": {"allow_equal": False, "allow_like": True},
        "phone": {"allow_equal": False, "allow_like": True},
        "email": {"allow_equal": False, "allow_like": True},
        "role_id": {"allow_equal": True},
        "active": {"allow_equal": False, "allow_bool": True},
    })

    builder.order_by(SysUser.id.desc())

    return builder
