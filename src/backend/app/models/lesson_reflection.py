"""
课后反思模型
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class LessonReflection(Base):
    """
    课后反思 - 每个 (user, lesson) 一条

    状态流转见 app.core.reflection_workflow。
    """
    __tablename__ = "lesson_reflections"
    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="uq_lesson_reflections_user_lesson"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True)
    reflection_text = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default="draft", index=True)  # draft | submitted | marked | rejected
    score = Column(Integer, nullable=True)  # 0-10，批改前为空
    admin_feedback = Column(Text, nullable=True)
    submitted_at = Column(DateTime, nullable=True, index=True)
    marked_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # 关系
    user = relationship("User")
    lesson = relationship("Lesson")

    def __repr__(self):
        return f"<LessonReflection(id={self.id} user={self.user_id} lesson={self.lesson_id} status='{self.status}')>"
