"""
数据库配置
支持SQLite（开发）、MySQL 和 PostgreSQL（生产）
"""
import os
import sqlite3
from pathlib import Path
from typing import Any, Dict, Sequence

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

# 数据库连接配置
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite:///./data/app.db"  # 默认SQLite
)

if DATABASE_URL.startswith("sqlite:///./"):
    Path(DATABASE_URL.replace("sqlite:///", "")).parent.mkdir(parents=True, exist_ok=True)

# 创建引擎
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in DATABASE_URL else {},
    pool_pre_ping="sqlite" not in DATABASE_URL,
)

# 创建会话工厂
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite 默认不检查外键，与 MySQL 行为保持一致"""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# 依赖注入
def get_db():
    """数据库会话依赖注入"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def upsert(
    db: Session,
    model: Any,
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
    update_values: Dict[str, Any],
) -> None:
    """
    插入或按唯一键更新（upsert）

    依赖数据库自身的原子 upsert 语义，不做应用层加锁：
    - SQLite / PostgreSQL: INSERT ... ON CONFLICT (...) DO UPDATE
    - MySQL: INSERT ... ON DUPLICATE KEY UPDATE

    Args:
        db: 数据库会话
        model: ORM 模型类
        values: 插入时的列值
        conflict_columns: 唯一约束列（MySQL 下由唯一索引隐式决定）
        update_values: 冲突时更新的列值

    Raises:
        NotImplementedError: 不支持的数据库方言
    """
    table = model.__table__
    dialect = db.get_bind().dialect.name

    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as sqlite_insert
        stmt = sqlite_insert(table).values(**values).on_conflict_do_update(
            index_elements=list(conflict_columns),
            set_=update_values,
        )
    elif dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as pg_insert
        stmt = pg_insert(table).values(**values).on_conflict_do_update(
            index_elements=list(conflict_columns),
            set_=update_values,
        )
    elif dialect in ("mysql", "mariadb"):
        from sqlalchemy.dialects.mysql import insert as mysql_insert
        stmt = mysql_insert(table).values(**values).on_duplicate_key_update(**update_values)
    else:
        raise NotImplementedError(f"upsert 不支持的数据库方言: {dialect}")

    db.execute(stmt)
