"""
课程（Lesson）模型 - 文本学习单元
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from .base import Base, utcnow

LESSON_LEVELS = ("beginner", "intermediate", "advanced")


class Lesson(Base):
    """课程模型 - 文本学习单元，附带反思题目"""
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    code_snippet = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    challenge = Column(Text, nullable=True)
    reflection = Column(Text, nullable=True)  # 反思题目（提示语）
    # 分类仍被课程引用时禁止删除分类
    skill_category_id = Column(
        Integer, ForeignKey("skill_categories.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    level = Column(String(20), nullable=False, default="beginner")  # beginner | intermediate | advanced
    created_at = Column(DateTime, default=utcnow)

    # 关系
    category = relationship("SkillCategory")

    def __repr__(self):
        return f"<Lesson(id={self.id} title='{self.title}' level='{self.level}')>"
