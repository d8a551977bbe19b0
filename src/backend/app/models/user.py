"""
用户模型
"""
from sqlalchemy import Column, Integer, String, DateTime

from .base import Base, utcnow


class User(Base):
    """用户模型"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)  # bcrypt 哈希，永不返回给客户端
    role = Column(String(20), nullable=True, default="user")  # 'user' | 'admin'，历史数据可能为空
    streak_days = Column(Integer, nullable=False, default=0)  # 连续学习天数
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<User(id={self.id} email='{self.email}' role='{self.role}')>"
