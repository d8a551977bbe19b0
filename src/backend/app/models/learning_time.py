"""
学习时长记录模型
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey

from .base import Base, utcnow


class LearningTimeSpent(Base):
    """学习时长记录，用于仪表盘统计"""
    __tablename__ = "learning_time_spent"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    time_spent_minutes = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime, default=utcnow, onupdate=utcnow, index=True)

    def __repr__(self):
        return f"<LearningTimeSpent(user={self.user_id} minutes={self.time_spent_minutes})>"
