"""
Sprint 观看进度模型
"""
from sqlalchemy import Column, Integer, Float, Boolean, DateTime, ForeignKey, UniqueConstraint

from .base import Base, utcnow


class SprintProgress(Base):
    """
    Sprint 观看进度 - 每个 (user, sprint) 最多一行，upsert 写入，后写覆盖

    progress_percentage 与 is_completed 由客户端分别提交，服务端不互相推导。
    """
    __tablename__ = "sprint_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "sprint_id", name="uq_sprint_progress_user_sprint"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    sprint_id = Column(Integer, ForeignKey("sprints.id", ondelete="CASCADE"), nullable=False, index=True)
    progress_percentage = Column(Float, nullable=False, default=0.0)  # 0-100
    is_completed = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<SprintProgress(user={self.user_id} sprint={self.sprint_id} progress={self.progress_percentage}%)>"
