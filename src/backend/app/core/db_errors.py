"""
数据库错误映射

在查询/提交边界捕获 SQLAlchemy 异常，按驱动错误码归类为业务异常：
- 外键失败 / 非空约束失败 -> ReferenceIntegrityError (400)
- 唯一键冲突 -> ConflictError (409)
- 其他 -> InternalError (500)，详细信息只写日志
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, InternalError, ReferenceIntegrityError

logger = logging.getLogger(__name__)

FOREIGN_KEY = "foreign_key"
UNIQUE = "unique"
NOT_NULL = "not_null"

# MySQL 错误码
_MYSQL_CODES = {
    1451: FOREIGN_KEY,  # ER_ROW_IS_REFERENCED_2
    1452: FOREIGN_KEY,  # ER_NO_REFERENCED_ROW_2
    1048: NOT_NULL,     # ER_BAD_NULL_ERROR
    1062: UNIQUE,       # ER_DUP_ENTRY
}

# PostgreSQL SQLSTATE
_PG_CODES = {
    "23503": FOREIGN_KEY,
    "23502": NOT_NULL,
    "23505": UNIQUE,
}


def classify_integrity_error(exc: IntegrityError) -> Optional[str]:
    """
    识别完整性错误类型

    Returns:
        FOREIGN_KEY / UNIQUE / NOT_NULL，无法识别时返回 None
    """
    orig = exc.orig

    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode in _PG_CODES:
        return _PG_CODES[pgcode]

    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int) and args[0] in _MYSQL_CODES:
        return _MYSQL_CODES[args[0]]

    message = str(orig).upper()
    if "FOREIGN KEY" in message:
        return FOREIGN_KEY
    if "UNIQUE" in message or "DUPLICATE" in message:
        return UNIQUE
    if "NOT NULL" in message:
        return NOT_NULL
    return None


@contextmanager
def translate_db_errors(
    db: Session,
    action: str,
    reference_message: Optional[str] = None,
    conflict_message: Optional[str] = None,
) -> Iterator[None]:
    """
    把代码块中的数据库异常转换为业务异常

    Args:
        db: 数据库会话（出错时回滚）
        action: 操作描述，用于日志和 500 消息，如 "save sprint progress"
        reference_message: 外键失败时返回给客户端的消息
        conflict_message: 唯一键冲突时返回给客户端的消息
    """
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        kind = classify_integrity_error(e)
        if kind in (FOREIGN_KEY, NOT_NULL):
            logger.warning(f"外键校验失败: action={action}, error={e.orig}")
            raise ReferenceIntegrityError(reference_message) from e
        if kind == UNIQUE:
            logger.warning(f"唯一键冲突: action={action}, error={e.orig}")
            raise ConflictError(conflict_message) from e
        logger.error(f"数据库完整性错误: action={action}", exc_info=True)
        raise InternalError(f"Failed to {action}. Database error logged on server.") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"数据库错误: action={action}", exc_info=True)
        raise InternalError(f"Failed to {action}. Database error logged on server.") from e
