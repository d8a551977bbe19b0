"""
技能分类模型
"""
from sqlalchemy import Column, Integer, String

from .base import Base


class SkillCategory(Base):
    """技能分类模型，被 Lesson 引用"""
    __tablename__ = "skill_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)

    def __repr__(self):
        return f"<SkillCategory(id={self.id} name='{self.name}')>"
