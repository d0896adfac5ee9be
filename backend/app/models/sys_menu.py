"""
系统菜单模型
backend/app/models/sys_menu.py
parent_id=0表示顶级菜单；meta为JSON（icon/title/hidden/keep_alive）；btn_perms为按钮权限标识列表
"""
from sqlalchemy import Column, Integer, JSON, String
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, int_pk_column


class SysMenu(TimestampMixin, Base):
    __tablename__ = 'sys_menu'
    __table_args__ = {'comment': '系统菜单表'}

    id = int_pk_column()
    parent_id = Column(Integer, nullable=False, default=0, index=True, comment='父菜单ID（0表示顶级菜单）')
    path = Column(String(100), nullable=False, comment='路由路径')
    name = Column(String(50), nullable=False, comment='路由名称')
    component = Column(String(100), nullable=True, default='', comment='前端组件标识（Layout表示容器）')
    sort = Column(Integer, nullable=False, default=0, comment='排序')
    meta = Column(JSON, nullable=False, default=dict, comment='菜单元数据')
    btn_perms = Column(JSON, nullable=False, default=list, comment='按钮权限标识')

    roles = relationship('SysRole', secondary='sys_role_menus', back_populates='menus', lazy='raise')

    def __repr__(self):
        return f"<SysMenu(id={self.id}, name={self.name}, parent_id={self.parent_id})>"
