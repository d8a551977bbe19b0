"""
课后反思服务
实现草稿 / 提交 / 重新提交 / 批改流程，状态规则见 app.core.reflection_workflow
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.database import upsert
from app.core.db_errors import translate_db_errors
from app.core.exceptions import ValidationError
from app.core.reflection_workflow import (
    ReflectionAction,
    ReflectionStatus,
    apply_transition,
    parse_mark_status,
    transition_timestamps,
    validate_reflection_text,
    validate_score,
)
from app.models import Lesson, LessonReflection, User, utcnow

logger = logging.getLogger(__name__)

LESSON_REFERENCE_MESSAGE = "Validation failed: Lesson or User ID does not exist. (Foreign Key Check Failed)"


class ReflectionService:
    """课后反思服务"""

    @staticmethod
    def get_reflection(db: Session, user_id: int, lesson_id: int) -> Optional[LessonReflection]:
        """获取用户在某课程下的反思，不存在时返回 None"""
        with translate_db_errors(db, "fetch reflection"):
            return db.query(LessonReflection).filter(
                LessonReflection.user_id == user_id,
                LessonReflection.lesson_id == lesson_id
            ).first()

    @staticmethod
    def _current_status(db: Session, user_id: int, lesson_id: int) -> Optional[ReflectionStatus]:
        reflection = ReflectionService.get_reflection(db, user_id, lesson_id)
        return ReflectionStatus(reflection.status) if reflection else None

    @staticmethod
    def _upsert_reflection(
        db: Session,
        action: ReflectionAction,
        user_id: int,
        lesson_id: int,
        text: str,
    ) -> ReflectionStatus:
        """按操作规则 upsert 反思文本与状态"""
        current = ReflectionService._current_status(db, user_id, lesson_id)
        target = apply_transition(action, current)
        stamps = transition_timestamps(action, utcnow())

        update_values = {"reflection_text": text, "status": target.value, **stamps}
        values = {
            "user_id": user_id,
            "lesson_id": lesson_id,
            "created_at": stamps["updated_at"],
            **update_values,
        }

        with translate_db_errors(db, f"{action.value} reflection", reference_message=LESSON_REFERENCE_MESSAGE):
            upsert(
                db,
                LessonReflection,
                values=values,
                conflict_columns=["user_id", "lesson_id"],
                update_values=update_values,
            )
            db.commit()

        logger.info(
            f"反思状态变更: user_id={user_id}, lesson_id={lesson_id}, "
            f"{current.value if current else None} -> {target.value}"
        )
        return target

    @staticmethod
    def save_draft(db: Session, user_id: int, lesson_id: int, reflection_text: Optional[str]) -> ReflectionStatus:
        """
        保存草稿：无论当前状态如何，状态都强制为 draft

        Raises:
            ValidationError: 文本为空
            ReferenceIntegrityError: 课程不存在
        """
        text = validate_reflection_text(ReflectionAction.SAVE_DRAFT, reflection_text)
        return ReflectionService._upsert_reflection(db, ReflectionAction.SAVE_DRAFT, user_id, lesson_id, text)

    @staticmethod
    def submit(db: Session, user_id: int, lesson_id: int, reflection_text: Optional[str]) -> ReflectionStatus:
        """
        提交批改：不存在时新建，已提交时重复提交是幂等的，刷新 submitted_at

        Raises:
            ValidationError: 文本去空白后为空
            ReferenceIntegrityError: 课程不存在
        """
        text = validate_reflection_text(ReflectionAction.SUBMIT, reflection_text)
        return ReflectionService._upsert_reflection(db, ReflectionAction.SUBMIT, user_id, lesson_id, text)

    @staticmethod
    def resubmit(db: Session, user_id: int, lesson_id: int, reflection_text: Optional[str]) -> ReflectionStatus:
        """
        重新提交：与提交相同，但反思必须已存在

        Raises:
            ValidationError: 文本去空白后为空
            NotFoundError: 反思不存在
        """
        text = validate_reflection_text(ReflectionAction.RESUBMIT, reflection_text)

        reflection = ReflectionService.get_reflection(db, user_id, lesson_id)
        current = ReflectionStatus(reflection.status) if reflection else None
        target = apply_transition(ReflectionAction.RESUBMIT, current)
        stamps = transition_timestamps(ReflectionAction.RESUBMIT, utcnow())

        with translate_db_errors(db, "resubmit reflection"):
            reflection.reflection_text = text
            reflection.status = target.value
            for column, value in stamps.items():
                setattr(reflection, column, value)
            db.commit()

        logger.info(
            f"反思重新提交: user_id={user_id}, lesson_id={lesson_id}, {current.value} -> {target.value}"
        )
        return target

    @staticmethod
    def mark(
        db: Session,
        reflection_id,
        score,
        admin_feedback: Optional[str],
        status: Optional[str],
        marked_by: Optional[int] = None,
    ) -> LessonReflection:
        """
        管理员批改反思

        Args:
            db: 数据库会话
            reflection_id: 反思 ID
            score: 分数（0-10）
            admin_feedback: 批改意见（必填）
            status: marked 或 rejected
            marked_by: 批改的管理员 ID（仅用于日志）

        Raises:
            ValidationError: 字段缺失、分数越界或状态非法
            NotFoundError: 反思不存在
        """
        if not reflection_id or score is None or not admin_feedback:
            raise ValidationError("Reflection ID, score, and feedback are required")

        score_value = validate_score(score)
        target = parse_mark_status(status)

        with translate_db_errors(db, "mark reflection"):
            reflection = db.query(LessonReflection).filter(LessonReflection.id == reflection_id).first()

        current = ReflectionStatus(reflection.status) if reflection else None
        apply_transition(ReflectionAction.MARK, current, target)
        stamps = transition_timestamps(ReflectionAction.MARK, utcnow())

        with translate_db_errors(db, "mark reflection"):
            reflection.score = score_value
            reflection.admin_feedback = admin_feedback
            reflection.status = target.value
            for column, value in stamps.items():
                setattr(reflection, column, value)
            db.commit()
            db.refresh(reflection)

        logger.info(
            f"反思已批改: reflection_id={reflection.id}, status={target.value}, "
            f"score={score_value}, marked_by={marked_by}"
        )
        return reflection

    @staticmethod
    def list_submitted(db: Session) -> List[Tuple[LessonReflection, User, Lesson]]:
        """
        获取待批改队列

        只包含状态为 submitted 的反思，按提交时间先后排序（先提交先批改）。
        """
        with translate_db_errors(db, "fetch submitted reflections"):
            return db.query(LessonReflection, User, Lesson).join(
                User, LessonReflection.user_id == User.id
            ).join(
                Lesson, LessonReflection.lesson_id == Lesson.id
            ).filter(
                LessonReflection.status == ReflectionStatus.SUBMITTED.value
            ).order_by(
                LessonReflection.submitted_at.asc(),
                LessonReflection.id.asc()
            ).all()
