"""
ORM 基类
"""
from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """获取当前 UTC 时间（不带时区，与数据库 DateTime 列一致）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
