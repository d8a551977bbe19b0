"""
用户管理模块
注册、登录、角色管理与学习统计
"""
import logging
from datetime import timedelta
from typing import List, Optional, Tuple

import bcrypt
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import get_admin_fallback_user_id, get_bcrypt_rounds
from app.core.db_errors import translate_db_errors
from app.core.exceptions import AuthenticationError, NotFoundError, ValidationError
from app.models import LearningTimeSpent, Sprint, SprintProgress, User, utcnow

logger = logging.getLogger(__name__)

VALID_ROLES = ("admin", "user")

# 每周学习目标（分钟），用于计算 weeklyProgress
WEEKLY_TARGET_MINUTES = 300

# bcrypt 只使用前 72 字节
_BCRYPT_MAX_BYTES = 72


class UserService:
    """用户服务"""

    @staticmethod
    def hash_password(password: str) -> str:
        """
        使用 bcrypt 生成密码哈希

        Args:
            password: 明文密码

        Returns:
            str: bcrypt 哈希字符串
        """
        password_bytes = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        salt = bcrypt.gensalt(rounds=get_bcrypt_rounds())
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """校验明文密码与 bcrypt 哈希是否匹配"""
        password_bytes = plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError:
            # 库中存的不是合法的 bcrypt 哈希
            logger.error("密码哈希格式非法，无法校验", exc_info=True)
            return False

    @staticmethod
    def signup(db: Session, name: Optional[str], email: Optional[str], password: Optional[str]) -> User:
        """
        注册新用户，role 默认为 user

        Raises:
            ValidationError: 字段缺失或邮箱已存在
        """
        if not name or not email or not password:
            raise ValidationError("Name, email, and password are required.")

        existing = db.query(User).filter(User.email == email).first()
        if existing:
            raise ValidationError("Email already exists", field="email")

        user = User(
            name=name,
            email=email,
            password=UserService.hash_password(password),
            role="user",
        )
        with translate_db_errors(db, "register user", conflict_message="Email already exists"):
            db.add(user)
            db.commit()
            db.refresh(user)

        logger.info(f"新用户注册: user_id={user.id}")
        return user

    @staticmethod
    def login(db: Session, email: Optional[str], password: Optional[str]) -> User:
        """
        邮箱 + 密码登录

        Raises:
            ValidationError: 用户不存在
            AuthenticationError: 密码错误
        """
        user = db.query(User).filter(User.email == email).first() if email else None
        if not user:
            raise ValidationError("User not found", field="email")

        if not password or not UserService.verify_password(password, user.password):
            raise AuthenticationError("Invalid credentials")

        return user

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        """获取用户"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def effective_role(user: User) -> str:
        """
        计算用户的有效角色

        role 为空（历史数据）时，若配置了 ADMIN_FALLBACK_USER_ID 且与该用户 ID 相同，
        视为 admin，否则视为 user。
        """
        if user.role:
            return user.role
        fallback_id = get_admin_fallback_user_id()
        if fallback_id is not None and user.id == fallback_id:
            return "admin"
        return "user"

    @staticmethod
    def resolve_role(db: Session, user_id: int) -> Optional[str]:
        """
        查询用户角色

        Returns:
            Optional[str]: 有效角色，用户不存在时返回 None
        """
        user = UserService.get_user(db, user_id)
        if not user:
            return None
        return UserService.effective_role(user)

    @staticmethod
    def list_users(db: Session) -> List[Tuple[User, str]]:
        """
        列出所有用户

        Returns:
            list[tuple[User, str]]: (用户, 有效角色)
        """
        users = db.query(User).order_by(User.id.asc()).all()
        return [(user, UserService.effective_role(user)) for user in users]

    @staticmethod
    def delete_user(db: Session, user_id: int) -> None:
        """
        删除用户，其进度/笔记/反思由外键级联删除

        Raises:
            NotFoundError: 用户不存在
        """
        with translate_db_errors(db, "delete user"):
            deleted = db.query(User).filter(User.id == user_id).delete(synchronize_session=False)
            db.commit()
        if deleted == 0:
            raise NotFoundError("User not found")
        logger.info(f"用户已删除: user_id={user_id}")

    @staticmethod
    def update_role(db: Session, user_id: int, new_role: Optional[str]) -> str:
        """
        修改用户角色

        Raises:
            ValidationError: 角色不是 admin / user
            NotFoundError: 用户不存在
        """
        if new_role not in VALID_ROLES:
            raise ValidationError("Invalid role provided. Must be 'admin' or 'user'.", field="newRole")

        with translate_db_errors(db, "update user role"):
            updated = db.query(User).filter(User.id == user_id).update(
                {User.role: new_role}, synchronize_session=False
            )
            db.commit()
        if updated == 0:
            raise NotFoundError("User not found")

        logger.info(f"用户角色已修改: user_id={user_id}, role={new_role}")
        return new_role

    @staticmethod
    def get_user_stats(db: Session, user_id: int) -> dict:
        """
        获取用户学习统计

        Args:
            db: 数据库会话
            user_id: 用户ID

        Returns:
            dict: totalSprints, completedSprints, totalMinutes, streakDays,
                  weeklyProgress（近 7 天分钟数 / 每周目标，上限 100）, learningHours

        Raises:
            NotFoundError: 用户不存在
        """
        user = UserService.get_user(db, user_id)
        if not user:
            raise NotFoundError("User not found.")

        with translate_db_errors(db, "fetch user stats"):
            total_sprints = db.query(func.count(Sprint.id)).scalar() or 0

            completed_sprints = db.query(func.count(func.distinct(SprintProgress.sprint_id))).filter(
                SprintProgress.user_id == user_id,
                SprintProgress.is_completed.is_(True)
            ).scalar() or 0

            total_minutes = db.query(func.coalesce(func.sum(LearningTimeSpent.time_spent_minutes), 0)).filter(
                LearningTimeSpent.user_id == user_id
            ).scalar() or 0

            week_ago = utcnow() - timedelta(days=7)
            weekly_minutes = db.query(func.coalesce(func.sum(LearningTimeSpent.time_spent_minutes), 0)).filter(
                LearningTimeSpent.user_id == user_id,
                LearningTimeSpent.last_updated >= week_ago
            ).scalar() or 0

        learning_hours = round(total_minutes / 60, 1)
        weekly_progress = min(100, round(weekly_minutes / WEEKLY_TARGET_MINUTES * 100))

        return {
            "totalSprints": total_sprints,
            "completedSprints": completed_sprints,
            "totalMinutes": total_minutes,
            "streakDays": user.streak_days or 0,
            "weeklyProgress": weekly_progress,
            "learningHours": learning_hours,
        }
