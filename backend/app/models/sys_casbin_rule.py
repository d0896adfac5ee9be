"""
API访问策略规则模型
backend/app/models/sys_casbin_rule.py
ptype='p'：v0=角色标识，v1=路径模式，v2=请求方法
"""
from sqlalchemy import Column, String, UniqueConstraint

from app.models.base import Base, int_pk_column

POLICY_TYPE = "p"


class SysCasbinRule(Base):
    __tablename__ = 'sys_casbin_rules'
    __table_args__ = (
        UniqueConstraint('ptype', 'v0', 'v1', 'v2', 'v3', 'v4', 'v5', name='unique_index'),
        {'comment': 'API访问策略表'},
    )

    id = int_pk_column()
    ptype = Column(String(100), nullable=False, default=POLICY_TYPE)
    v0 = Column(String(100), nullable=False, default='')
    v1 = Column(String(100), nullable=False, default='')
    v2 = Column(String(100), nullable=False, default='')
    v3 = Column(String(100), nullable=False, default='')
    v4 = Column(String(100), nullable=False, default='')
    v5 = Column(String(100), nullable=False, default='')

    def __repr__(self):
        return f"<SysCasbinRule({self.ptype}, {self.v0}, {self.v1}, {self.v2})>"
