"""
Sprint 管理服务
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.db_errors import translate_db_errors
from app.core.exceptions import NotFoundError, ValidationError
from app.models import Sprint

logger = logging.getLogger(__name__)

DEFAULT_DURATION_SECONDS = 600
MAX_DURATION_SECONDS = 3600


def minutes_to_duration_seconds(max_duration_minutes) -> int:
    """
    把管理端提交的分钟数换算为秒，并限制在 (0, 3600]

    非数字或 <= 0 时使用默认 600 秒。
    """
    try:
        seconds = int(max_duration_minutes) * 60
    except (TypeError, ValueError):
        return DEFAULT_DURATION_SECONDS
    if seconds <= 0:
        return DEFAULT_DURATION_SECONDS
    return min(seconds, MAX_DURATION_SECONDS)


class SprintService:
    """Sprint 管理服务"""

    @staticmethod
    def list_sprints(db: Session) -> List[Sprint]:
        """列出所有 Sprint，最新创建的在前"""
        with translate_db_errors(db, "fetch sprints"):
            return db.query(Sprint).order_by(Sprint.created_at.desc(), Sprint.id.desc()).all()

    @staticmethod
    def create_sprint(
        db: Session,
        title: Optional[str],
        description: Optional[str],
        video_url: Optional[str],
        max_duration_minutes,
        thumbnail_url: Optional[str] = None,
    ) -> Sprint:
        """
        创建 Sprint，新建的 Sprint 默认不激活

        Raises:
            ValidationError: 必填字段缺失
        """
        if not title or not description or not video_url or max_duration_minutes is None:
            raise ValidationError(
                "Title, description, video URL (or simulated path), and max duration are required."
            )

        sprint = Sprint(
            title=title,
            description=description,
            video_url=video_url,
            max_duration_seconds=minutes_to_duration_seconds(max_duration_minutes),
            is_active=False,
            thumbnail_url=thumbnail_url or None,
        )
        with translate_db_errors(db, "create new sprint"):
            db.add(sprint)
            db.commit()
            db.refresh(sprint)

        logger.info(f"Sprint 已创建: sprint_id={sprint.id}")
        return sprint

    @staticmethod
    def delete_sprint(db: Session, sprint_id: int) -> None:
        """
        删除 Sprint

        Raises:
            NotFoundError: Sprint 不存在
        """
        with translate_db_errors(db, "delete sprint"):
            deleted = db.query(Sprint).filter(Sprint.id == sprint_id).delete(synchronize_session=False)
            db.commit()
        if deleted == 0:
            raise NotFoundError("Sprint not found")
        logger.info(f"Sprint 已删除: sprint_id={sprint_id}")

    @staticmethod
    def set_active(db: Session, sprint_id: int, should_activate: bool) -> bool:
        """
        激活 / 取消激活 Sprint

        激活时在同一事务内先取消其他所有 Sprint 的激活状态，再激活目标，
        保证任意时刻最多一个激活的 Sprint。并发激活由批量更新取得的写锁串行化，
        最后提交的一方生效。

        Returns:
            bool: 目标 Sprint 的最新激活状态

        Raises:
            NotFoundError: Sprint 不存在
        """
        with translate_db_errors(db, "update sprint status"):
            sprint = db.query(Sprint).filter(Sprint.id == sprint_id).first()
            if not sprint:
                raise NotFoundError("Sprint not found")

            if should_activate:
                db.query(Sprint).filter(Sprint.id != sprint_id).update(
                    {Sprint.is_active: False}, synchronize_session=False
                )
            sprint.is_active = bool(should_activate)
            db.commit()

        logger.info(f"Sprint 激活状态已更新: sprint_id={sprint_id}, is_active={bool(should_activate)}")
        return bool(should_activate)
