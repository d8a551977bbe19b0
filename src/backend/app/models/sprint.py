"""
Sprint 模型 - 限时视频学习单元
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, CheckConstraint

from .base import Base, utcnow


class Sprint(Base):
    """
    Sprint 模型 - 限时视频学习单元

    同一时间最多只有一个 Sprint 处于激活状态，由 SprintService.set_active 维护。
    """
    __tablename__ = "sprints"
    __table_args__ = (
        CheckConstraint(
            "max_duration_seconds > 0 AND max_duration_seconds <= 3600",
            name="ck_sprints_max_duration",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    video_url = Column(String(500), nullable=False)  # /uploads/ 下的路径或外部 URL
    max_duration_seconds = Column(Integer, nullable=False, default=600)
    is_active = Column(Boolean, nullable=False, default=False, index=True)
    thumbnail_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<Sprint(id={self.id} title='{self.title}' active={self.is_active})>"
