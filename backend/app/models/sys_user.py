"""
系统用户模型
backend/app/models/sys_user.py
单用户单角色（role_id），deleted_at非空表示已软删除
"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, int_pk_column


class SysUser(TimestampMixin, Base):
    __tablename__ = 'sys_user'
    __table_args__ = {'comment': '系统用户表'}

    id = int_pk_column()
    username = Column(String(50), nullable=False, unique=True, index=True, comment='用户名')
    password = Column(String(255), nullable=False, comment='密码哈希')
    nickname = Column(String(50), nullable=True, default='', comment='昵称')
    header_img = Column(String(255), nullable=True, default='', comment='头像')
    phone = Column(String(20), nullable=True, default='', comment='联系方式')
    email = Column(String(100), nullable=True, default='', comment='用户邮箱')
    role_id = Column(Integer, ForeignKey('sys_role.id'), nullable=False, index=True, comment='角色ID')
    active = Column(Boolean, nullable=False, default=True, comment='是否启用')
    deleted_at = Column(DateTime, nullable=True, index=True, comment='软删除时间')

    role = relationship('SysRole', lazy='selectin')

    def __repr__(self):
        return f"<SysUser(id={self.id}, username={self.username}, role_id={self.role_id})>"
