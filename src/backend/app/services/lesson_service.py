"""
课程与技能分类服务
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.db_errors import translate_db_errors
from app.core.exceptions import ConflictError, NotFoundError, ReferenceIntegrityError, ValidationError
from app.models import LESSON_LEVELS, Lesson, SkillCategory

logger = logging.getLogger(__name__)

# 允许通过 PUT 修改的课程字段
UPDATABLE_LESSON_FIELDS = (
    "title",
    "code_snippet",
    "description",
    "challenge",
    "reflection",
    "skill_category_id",
    "level",
)

CATEGORY_REFERENCE_MESSAGE = "Validation failed: Skill category does not exist. (Foreign Key Check Failed)"


def _validate_level(level: Any) -> str:
    if level not in LESSON_LEVELS:
        raise ValidationError(
            f"Level must be one of: {', '.join(LESSON_LEVELS)}", field="level"
        )
    return level


class CategoryService:
    """技能分类服务"""

    @staticmethod
    def list_categories(db: Session) -> List[SkillCategory]:
        """按名称排序列出所有分类"""
        with translate_db_errors(db, "fetch categories"):
            return db.query(SkillCategory).order_by(SkillCategory.name.asc()).all()

    @staticmethod
    def create_category(db: Session, name: Optional[str]) -> SkillCategory:
        """
        创建分类

        Raises:
            ValidationError: 名称为空
            ConflictError: 名称已存在
        """
        if not name:
            raise ValidationError("Category name is required.", field="name")

        category = SkillCategory(name=name)
        with translate_db_errors(db, "create new category", conflict_message="Category already exists."):
            db.add(category)
            db.commit()
            db.refresh(category)

        logger.info(f"分类已创建: category_id={category.id}")
        return category

    @staticmethod
    def delete_category(db: Session, category_id: int) -> None:
        """
        删除分类，仍被课程引用时由数据库外键拒绝

        Raises:
            NotFoundError: 分类不存在
            ConflictError: 分类仍被课程引用
        """
        try:
            with translate_db_errors(db, "delete category"):
                deleted = db.query(SkillCategory).filter(
                    SkillCategory.id == category_id
                ).delete(synchronize_session=False)
                db.commit()
        except ReferenceIntegrityError as e:
            raise ConflictError("Failed to delete category (Ensure no lessons are using it).") from e

        if deleted == 0:
            raise NotFoundError("Category not found")
        logger.info(f"分类已删除: category_id={category_id}")


class LessonService:
    """课程服务"""

    @staticmethod
    def _base_query(db: Session):
        return db.query(Lesson, SkillCategory.name).outerjoin(
            SkillCategory, Lesson.skill_category_id == SkillCategory.id
        )

    @staticmethod
    def list_lessons(db: Session) -> List[Tuple[Lesson, Optional[str]]]:
        """
        列出所有课程，最新创建的在前

        Returns:
            list[tuple[Lesson, Optional[str]]]: (课程, 分类名称)
        """
        with translate_db_errors(db, "fetch lessons"):
            return LessonService._base_query(db).order_by(
                Lesson.created_at.desc(), Lesson.id.desc()
            ).all()

    @staticmethod
    def get_lesson(db: Session, lesson_id: int) -> Tuple[Lesson, Optional[str]]:
        """
        获取单个课程

        Raises:
            NotFoundError: 课程不存在
        """
        with translate_db_errors(db, "fetch lesson"):
            row = LessonService._base_query(db).filter(Lesson.id == lesson_id).first()
        if not row:
            raise NotFoundError("Lesson not found")
        return row

    @staticmethod
    def create_lesson(db: Session, payload: Dict[str, Any]) -> Lesson:
        """
        创建课程

        Args:
            db: 数据库会话
            payload: 课程字段，title 与 description 必填，level 默认 beginner

        Raises:
            ValidationError: 必填字段缺失或 level 非法
            ReferenceIntegrityError: 分类不存在
        """
        if not payload.get("title") or not payload.get("description"):
            raise ValidationError("Title and description are required for a lesson.")

        lesson = Lesson(
            title=payload["title"],
            code_snippet=payload.get("code_snippet"),
            description=payload["description"],
            challenge=payload.get("challenge"),
            reflection=payload.get("reflection"),
            skill_category_id=payload.get("skill_category_id"),
            level=_validate_level(payload.get("level") or "beginner"),
        )
        with translate_db_errors(db, "create lesson", reference_message=CATEGORY_REFERENCE_MESSAGE):
            db.add(lesson)
            db.commit()
            db.refresh(lesson)

        logger.info(f"课程已创建: lesson_id={lesson.id}")
        return lesson

    @staticmethod
    def update_lesson(db: Session, lesson_id: int, payload: Dict[str, Any]) -> None:
        """
        部分更新课程，只修改 payload 中出现的可更新字段

        Raises:
            ValidationError: 没有可更新字段或 level 非法
            NotFoundError: 课程不存在
            ReferenceIntegrityError: 分类不存在
        """
        changes = {field: payload[field] for field in UPDATABLE_LESSON_FIELDS if field in payload}
        if not changes:
            raise ValidationError("No fields provided to update.")
        if "level" in changes:
            _validate_level(changes["level"])
        if "title" in changes and not changes["title"]:
            raise ValidationError("Lesson title cannot be empty.", field="title")

        with translate_db_errors(db, "update lesson", reference_message=CATEGORY_REFERENCE_MESSAGE):
            updated = db.query(Lesson).filter(Lesson.id == lesson_id).update(
                {getattr(Lesson, field): value for field, value in changes.items()},
                synchronize_session=False,
            )
            db.commit()
        if updated == 0:
            raise NotFoundError("Lesson not found.")
        logger.info(f"课程已更新: lesson_id={lesson_id}, fields={sorted(changes)}")

    @staticmethod
    def delete_lesson(db: Session, lesson_id: int) -> None:
        """
        删除课程

        Raises:
            NotFoundError: 课程不存在
        """
        with translate_db_errors(db, "delete lesson"):
            deleted = db.query(Lesson).filter(Lesson.id == lesson_id).delete(synchronize_session=False)
            db.commit()
        if deleted == 0:
            raise NotFoundError("Lesson not found")
        logger.info(f"课程已删除: lesson_id={lesson_id}")
