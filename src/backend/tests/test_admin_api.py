"""
管理接口测试：Sprint、技能分类、课程、用户
"""
import threading
from datetime import timedelta

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from app.models import Base, LearningTimeSpent, Sprint, SprintProgress, utcnow
from app.services.sprint_service import SprintService, minutes_to_duration_seconds


def _headers(user):
    return {"X-User-Id": str(user.id)}


def _sprint_payload(**overrides):
    payload = {
        "title": "Sprint",
        "description": "Watch and code",
        "video_url": "/uploads/sprint.mp4",
        "max_duration_minutes": 10,
    }
    payload.update(overrides)
    return payload


class TestSprints:
    """Sprint 管理"""

    def test_list_is_public(self, client, sprint):
        response = client.get("/api/sprints")
        assert response.status_code == 200
        body = response.json()
        assert body[0]["id"] == sprint.id
        assert body[0]["is_active"] is False

    def test_create(self, client, admin):
        response = client.post("/api/sprints", headers=_headers(admin), json=_sprint_payload(max_duration_minutes=5))
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Sprint created successfully"
        assert body["max_duration_seconds"] == 300
        assert body["is_active"] is False

    @pytest.mark.parametrize("minutes,seconds", [
        (5, 300), ("15", 900), (60, 3600), (61, 3600), (0, 600), (-3, 600), ("abc", 600), (None, 600),
    ])
    def test_duration_conversion(self, minutes, seconds):
        assert minutes_to_duration_seconds(minutes) == seconds

    def test_create_missing_fields(self, client, admin):
        response = client.post("/api/sprints", headers=_headers(admin), json=_sprint_payload(video_url=""))
        assert response.status_code == 400

    def test_create_requires_admin(self, client, user):
        response = client.post("/api/sprints", headers=_headers(user), json=_sprint_payload())
        assert response.status_code == 403

    def test_create_requires_auth(self, client):
        response = client.post("/api/sprints", json=_sprint_payload())
        assert response.status_code == 401

    def test_unknown_caller_is_403(self, client):
        response = client.post("/api/sprints", headers={"X-User-Id": "424242"}, json=_sprint_payload())
        assert response.status_code == 403

    def test_single_active_sprint(self, client, admin, db_session):
        ids = [
            client.post("/api/sprints", headers=_headers(admin), json=_sprint_payload(title=f"S{i}")).json()["id"]
            for i in range(3)
        ]
        for sprint_id in ids:
            response = client.put(f"/api/sprints/{sprint_id}/active", headers=_headers(admin),
                                  json={"shouldActivate": True})
            assert response.status_code == 200
            assert response.json() == {"message": "Sprint set as active successfully", "is_active": True}

            db_session.expire_all()
            active = [s.id for s in db_session.query(Sprint).filter(Sprint.is_active.is_(True))]
            assert active == [sprint_id]

    def test_deactivate(self, client, admin, sprint, db_session):
        client.put(f"/api/sprints/{sprint.id}/active", headers=_headers(admin), json={"shouldActivate": True})
        response = client.put(f"/api/sprints/{sprint.id}/active", headers=_headers(admin),
                              json={"shouldActivate": False})
        assert response.json() == {"message": "Sprint set as inactive successfully", "is_active": False}
        db_session.expire_all()
        assert db_session.query(Sprint).filter(Sprint.is_active.is_(True)).count() == 0

    def test_activate_missing_sprint_keeps_current(self, client, admin, sprint, db_session):
        client.put(f"/api/sprints/{sprint.id}/active", headers=_headers(admin), json={"shouldActivate": True})
        response = client.put("/api/sprints/9999/active", headers=_headers(admin), json={"shouldActivate": True})
        assert response.status_code == 404
        db_session.expire_all()
        assert db_session.get(Sprint, sprint.id).is_active is True

    def test_delete(self, client, admin, sprint):
        # 删除后对象已失效，提前取出 ID
        sprint_id = sprint.id
        assert client.delete(f"/api/sprints/{sprint_id}", headers=_headers(admin)).status_code == 204
        response = client.delete(f"/api/sprints/{sprint_id}", headers=_headers(admin))
        assert response.status_code == 404
        assert response.json() == {"error": "Sprint not found"}


class TestConcurrentActivation:
    """两个管理员同时激活不同 Sprint"""

    @pytest.fixture
    def file_session_factory(self, tmp_path):
        # 内存库只有一个连接，这里需要能真正并发的文件库
        engine = create_engine(
            f"sqlite:///{tmp_path / 'sprints.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(bind=engine)
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
        engine.dispose()

    def test_exactly_one_active_after_race(self, file_session_factory):
        with file_session_factory() as db:
            sprints = [
                Sprint(title=f"S{i}", description="race", video_url="/uploads/race.mp4", max_duration_seconds=60)
                for i in range(2)
            ]
            db.add_all(sprints)
            db.commit()
            ids = [s.id for s in sprints]

        for _ in range(5):
            barrier = threading.Barrier(len(ids))
            errors = []

            def activate(sprint_id):
                with file_session_factory() as db:
                    barrier.wait()
                    try:
                        SprintService.set_active(db, sprint_id, True)
                    except Exception as exc:
                        errors.append(exc)

            threads = [threading.Thread(target=activate, args=(sprint_id,)) for sprint_id in ids]
            for t in threads:
                t.start()
            for t in threads:
                t.join(timeout=60)

            assert errors == []
            with file_session_factory() as db:
                active = [s.id for s in db.query(Sprint).filter(Sprint.is_active.is_(True))]
            assert len(active) == 1
            assert active[0] in ids


class TestCategories:
    """技能分类"""

    def test_create_and_list_sorted(self, client, admin):
        for name in ("Rust", "Go", "Python"):
            assert client.post("/api/categories", headers=_headers(admin), json={"name": name}).status_code == 201
        names = [c["name"] for c in client.get("/api/categories").json()]
        assert names == ["Go", "Python", "Rust"]

    def test_duplicate_is_409(self, client, admin, category):
        response = client.post("/api/categories", headers=_headers(admin), json={"name": category.name})
        assert response.status_code == 409
        assert response.json() == {"error": "Category already exists."}

    def test_delete_in_use_is_409(self, client, admin, category, lesson):
        response = client.delete(f"/api/categories/{category.id}", headers=_headers(admin))
        assert response.status_code == 409

    def test_delete_unused(self, client, admin, category):
        category_id = category.id
        assert client.delete(f"/api/categories/{category_id}", headers=_headers(admin)).status_code == 204
        response = client.delete(f"/api/categories/{category_id}", headers=_headers(admin))
        assert response.status_code == 404
        assert response.json() == {"error": "Category not found"}


class TestLessons:
    """课程管理"""

    def test_list_includes_category_name(self, client, lesson, category):
        body = client.get("/api/lessons").json()
        assert body[0]["id"] == lesson.id
        assert body[0]["skill_category"] == category.name

    def test_get_one(self, client, lesson):
        response = client.get(f"/api/lessons/{lesson.id}")
        assert response.status_code == 200
        assert response.json()["title"] == lesson.title
        assert client.get("/api/lessons/9999").status_code == 404

    def test_create(self, client, admin, category):
        response = client.post("/api/lessons", headers=_headers(admin), json={
            "title": "Decorators", "description": "Wrap functions", "skill_category_id": category.id,
        })
        assert response.status_code == 201
        assert response.json()["level"] == "beginner"

    def test_create_requires_title_and_description(self, client, admin):
        response = client.post("/api/lessons", headers=_headers(admin), json={"title": "Only title"})
        assert response.status_code == 400
        assert response.json() == {"error": "Title and description are required for a lesson."}

    def test_create_invalid_level(self, client, admin):
        response = client.post("/api/lessons", headers=_headers(admin), json={
            "title": "T", "description": "D", "level": "expert",
        })
        assert response.status_code == 400

    def test_create_unknown_category(self, client, admin):
        response = client.post("/api/lessons", headers=_headers(admin), json={
            "title": "T", "description": "D", "skill_category_id": 9999,
        })
        assert response.status_code == 400
        assert response.json()["error"].startswith("Validation failed")

    def test_partial_update(self, client, admin, lesson):
        response = client.put(f"/api/lessons/{lesson.id}", headers=_headers(admin), json={"level": "advanced"})
        assert response.status_code == 200
        body = client.get(f"/api/lessons/{lesson.id}").json()
        assert body["level"] == "advanced"
        assert body["title"] == lesson.title

    def test_update_without_fields(self, client, admin, lesson):
        response = client.put(f"/api/lessons/{lesson.id}", headers=_headers(admin), json={})
        assert response.status_code == 400
        assert response.json() == {"error": "No fields provided to update."}

    def test_update_missing_lesson(self, client, admin):
        response = client.put("/api/lessons/9999", headers=_headers(admin), json={"title": "New"})
        assert response.status_code == 404

    def test_delete(self, client, admin, lesson):
        lesson_id = lesson.id
        assert client.delete(f"/api/lessons/{lesson_id}", headers=_headers(admin)).status_code == 204
        response = client.delete(f"/api/lessons/{lesson_id}", headers=_headers(admin))
        assert response.status_code == 404
        assert response.json() == {"error": "Lesson not found"}

    def test_mutations_require_admin(self, client, user, lesson):
        assert client.post("/api/lessons", headers=_headers(user), json={"title": "T", "description": "D"}).status_code == 403
        assert client.put(f"/api/lessons/{lesson.id}", headers=_headers(user), json={"title": "X"}).status_code == 403
        assert client.delete(f"/api/lessons/{lesson.id}", headers=_headers(user)).status_code == 403


class TestUsers:
    """用户管理"""

    def test_list_users(self, client, admin, user):
        response = client.get("/api/users", headers=_headers(admin))
        assert response.status_code == 200
        roles = {u["email"]: u["role"] for u in response.json()}
        assert roles == {admin.email: "admin", user.email: "user"}
        assert all("password" not in u for u in response.json())

    def test_list_requires_admin(self, client, user):
        assert client.get("/api/users", headers=_headers(user)).status_code == 403

    def test_update_role(self, client, admin, user):
        response = client.put(f"/api/users/{user.id}/role", headers=_headers(admin), json={"newRole": "admin"})
        assert response.status_code == 200
        assert response.json() == {"message": "Role updated successfully", "newRole": "admin"}
        # 新管理员立即可以访问管理接口
        assert client.get("/api/users", headers=_headers(user)).status_code == 200

    def test_update_role_invalid(self, client, admin, user):
        response = client.put(f"/api/users/{user.id}/role", headers=_headers(admin), json={"newRole": "owner"})
        assert response.status_code == 400

    def test_update_role_unknown_user(self, client, admin):
        response = client.put("/api/users/9999/role", headers=_headers(admin), json={"newRole": "user"})
        assert response.status_code == 404

    def test_delete_user_cascades(self, client, admin, user, sprint, db_session):
        client.post("/api/progress", headers=_headers(user), json={
            "sprint_id": sprint.id, "progress_percentage": 10, "is_completed": False,
        })
        user_id = user.id
        assert client.delete(f"/api/users/{user_id}", headers=_headers(admin)).status_code == 204
        assert db_session.query(SprintProgress).filter(SprintProgress.user_id == user_id).count() == 0
        assert client.delete(f"/api/users/{user_id}", headers=_headers(admin)).status_code == 404


class TestAdminFallback:
    """role 为空的历史用户的兜底管理员规则"""

    def test_disabled_by_default(self, client, make_user, db_session):
        legacy = make_user(name="Legacy", email="legacy@example.com", role=None)
        assert db_session.execute(text("SELECT role FROM users WHERE id = :id"), {"id": legacy.id}).scalar() is None
        assert client.get("/api/users", headers=_headers(legacy)).status_code == 403

    def test_fallback_id_grants_admin(self, client, make_user, monkeypatch):
        legacy = make_user(name="Legacy", email="legacy@example.com", role=None)
        monkeypatch.setenv("ADMIN_FALLBACK_USER_ID", str(legacy.id))

        response = client.get("/api/users", headers=_headers(legacy))
        assert response.status_code == 200
        assert response.json()[0]["role"] == "admin"

    def test_fallback_only_for_configured_id(self, client, make_user, monkeypatch):
        legacy = make_user(name="Legacy", email="legacy@example.com", role=None)
        other = make_user(name="Other", email="other@example.com", role=None)
        monkeypatch.setenv("ADMIN_FALLBACK_USER_ID", str(legacy.id))

        roles = {u["id"]: u["role"] for u in client.get("/api/users", headers=_headers(legacy)).json()}
        assert roles == {legacy.id: "admin", other.id: "user"}
        assert client.get("/api/users", headers=_headers(other)).status_code == 403

    def test_explicit_role_wins_over_fallback(self, client, user, monkeypatch):
        monkeypatch.setenv("ADMIN_FALLBACK_USER_ID", str(user.id))
        assert client.get("/api/users", headers=_headers(user)).status_code == 403


class TestUserStats:
    """学习统计"""

    def test_own_stats(self, client, user, sprint, db_session):
        client.post("/api/progress", headers=_headers(user), json={
            "sprint_id": sprint.id, "progress_percentage": 100, "is_completed": True,
        })
        db_session.add_all([
            LearningTimeSpent(user_id=user.id, time_spent_minutes=90, last_updated=utcnow()),
            LearningTimeSpent(user_id=user.id, time_spent_minutes=60, last_updated=utcnow() - timedelta(days=30)),
        ])
        db_session.commit()

        response = client.get(f"/api/users/{user.id}/stats", headers=_headers(user))
        assert response.status_code == 200
        assert response.json() == {
            "totalSprints": 1,
            "completedSprints": 1,
            "totalMinutes": 150,
            "streakDays": 0,
            "weeklyProgress": 30,
            "learningHours": 2.5,
        }

    def test_weekly_progress_capped(self, client, user, db_session):
        db_session.add(LearningTimeSpent(user_id=user.id, time_spent_minutes=900, last_updated=utcnow()))
        db_session.commit()
        body = client.get(f"/api/users/{user.id}/stats", headers=_headers(user)).json()
        assert body["weeklyProgress"] == 100

    def test_other_users_stats_forbidden(self, client, user, admin):
        assert client.get(f"/api/users/{admin.id}/stats", headers=_headers(user)).status_code == 403
