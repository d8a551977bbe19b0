"""
Sprint 观看进度服务
"""
import logging
from typing import Dict

from sqlalchemy.orm import Session

from app.core.database import upsert
from app.core.db_errors import translate_db_errors
from app.core.exceptions import ValidationError
from app.models import SprintProgress, utcnow

logger = logging.getLogger(__name__)

PROGRESS_KEY_PREFIX = "dynamic-sprint-"


def clamp_percentage(value: float) -> float:
    """把进度限制在 [0, 100]"""
    return max(0.0, min(100.0, float(value)))


class ProgressService:
    """Sprint 观看进度服务"""

    @staticmethod
    def get_progress_map(db: Session, user_id: int) -> Dict[str, dict]:
        """
        获取用户所有 Sprint 的进度

        没有记录的 Sprint 不出现在结果中，客户端按 0% / 未完成处理。

        Returns:
            dict: {"dynamic-sprint-<id>": {"progress": float, "completed": bool}}
        """
        with translate_db_errors(db, "fetch user progress"):
            rows = db.query(SprintProgress).filter(SprintProgress.user_id == user_id).all()

        return {
            f"{PROGRESS_KEY_PREFIX}{row.sprint_id}": {
                "progress": clamp_percentage(row.progress_percentage),
                "completed": bool(row.is_completed),
            }
            for row in rows
        }

    @staticmethod
    def save_progress(
        db: Session,
        user_id: int,
        sprint_id,
        progress_percentage,
        is_completed,
    ) -> None:
        """
        保存进度（upsert，后写覆盖）

        progress_percentage 与 is_completed 按客户端提交原样存储，不互相推导。

        Raises:
            ValidationError: 字段缺失
            ReferenceIntegrityError: Sprint 或用户不存在
        """
        if not sprint_id or progress_percentage is None or is_completed is None:
            raise ValidationError("sprintId, progressPercent, and isCompleted are required.")

        try:
            percentage = float(progress_percentage)
        except (TypeError, ValueError):
            raise ValidationError("progress_percentage must be a number", field="progress_percentage")

        completed = bool(is_completed)
        now = utcnow()

        with translate_db_errors(
            db,
            "save sprint progress",
            reference_message="Validation failed: Sprint or User ID does not exist. (Foreign Key Check Failed)",
        ):
            upsert(
                db,
                SprintProgress,
                values={
                    "user_id": user_id,
                    "sprint_id": sprint_id,
                    "progress_percentage": percentage,
                    "is_completed": completed,
                    "updated_at": now,
                },
                conflict_columns=["user_id", "sprint_id"],
                update_values={
                    "progress_percentage": percentage,
                    "is_completed": completed,
                    "updated_at": now,
                },
            )
            db.commit()
