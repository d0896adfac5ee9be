"""
系统角色模型
backend/app/models/sys_role.py
"""
from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, int_pk_column

# 数据权限范围（all/dept/self，仅存储，不参与查询过滤）
DATA_SCOPE_ALL = "all"


class SysRole(TimestampMixin, Base):
    __tablename__ = 'sys_role'
    __table_args__ = {'comment': '系统角色表'}

    id = int_pk_column()
    role_name = Column(String(50), nullable=False, comment='角色名称')
    role_key = Column(String(50), nullable=False, unique=True, index=True, comment='角色标识')
    data_scope = Column(String(20), nullable=False, default=DATA_SCOPE_ALL, comment='数据权限(all/dept/self)')
    sort = Column(Integer, nullable=False, default=0, comment='显示顺序')
    status = Column(Boolean, nullable=False, default=True, comment='角色状态')
    remark = Column(String(255), nullable=True, comment='备注')

    # 与菜单的多对多关系（关联表由Repo直接读写，禁止隐式加载）
    menus = relationship('SysMenu', secondary='sys_role_menus', back_populates='roles', lazy='raise')

    def __repr__(self):
        return f"<SysRole(id={self.id}, role_name={self.role_name}, role_key={self.role_key})>"


# 角色菜单关联表（多对多），每次分配整体重建
sys_role_menus = Table(
    'sys_role_menus',
    Base.metadata,
    Column('role_id', Integer, ForeignKey('sys_role.id', ondelete='CASCADE'), primary_key=True, comment='角色ID'),
    Column('menu_id', Integer, ForeignKey('sys_menu.id', ondelete='CASCADE'), primary_key=True, comment='菜单ID'),
    comment='角色菜单关联表'
)
