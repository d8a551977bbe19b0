"""
Pytest 配置和通用 Fixtures

提供内存 SQLite 数据库、TestClient 以及普通用户 / 管理员 fixtures
"""
import os

# 导入 main 之前设置，避免创建本地数据库文件
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import get_db
from app.models import Base, Lesson, SkillCategory, Sprint, User
from app.services.user_service import UserService


# ==================== 数据库 ====================

@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """bcrypt 使用最低成本加快测试，并关闭兜底管理员"""
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.delenv("ADMIN_FALLBACK_USER_ID", raising=False)


@pytest.fixture
def db_session():
    """每个测试独立的内存数据库"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def client(db_session):
    """使用内存数据库的 TestClient"""
    from main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ==================== 数据工厂 ====================

def _create_user(db, name, email, password, role):
    user = User(
        name=name,
        email=email,
        password=UserService.hash_password(password),
        role=role,
    )
    db.add(user)
    db.commit()
    if role is None:
        # 列默认值会把显式的 None 写成 "user"，历史数据需要真正的 NULL
        db.query(User).filter(User.id == user.id).update({User.role: None}, synchronize_session=False)
        db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def make_user(db_session):
    """创建用户的工厂"""
    def _make(name="Alice", email="alice@example.com", password="secret123", role="user"):
        return _create_user(db_session, name, email, password, role)
    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(name="Admin", email="admin@example.com", role="admin")


@pytest.fixture
def sprint(db_session):
    sprint = Sprint(
        title="Intro to Loops",
        description="Ten minute sprint",
        video_url="/uploads/loops.mp4",
        max_duration_seconds=600,
    )
    db_session.add(sprint)
    db_session.commit()
    db_session.refresh(sprint)
    return sprint


@pytest.fixture
def category(db_session):
    category = SkillCategory(name="Python")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def lesson(db_session, category):
    lesson = Lesson(
        title="List comprehensions",
        description="Build lists in one line",
        reflection="What surprised you?",
        skill_category_id=category.id,
        level="beginner",
    )
    db_session.add(lesson)
    db_session.commit()
    db_session.refresh(lesson)
    return lesson
