"""
Models package
Export all database models
"""
import logging

from .base import Base, utcnow
from .user import User
from .sprint import Sprint
from .skill_category import SkillCategory
from .lesson import Lesson, LESSON_LEVELS
from .sprint_progress import SprintProgress
from .user_note import UserNote
from .lesson_reflection import LessonReflection
from .learning_time import LearningTimeSpent

logger = logging.getLogger(__name__)

__all__ = [
    "Base",
    "utcnow",
    "User",
    "Sprint",
    "SkillCategory",
    "Lesson",
    "LESSON_LEVELS",
    "SprintProgress",
    "UserNote",
    "LessonReflection",
    "LearningTimeSpent",
]


def init_db():
    """初始化数据库"""
    from ..core.database import engine

    # 创建所有表
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


def drop_all():
    """删除所有表（仅开发测试用）"""
    from ..core.database import engine

    # 删除所有表
    Base.metadata.drop_all(bind=engine)
    logger.warning("All tables dropped")
