"""
课后反思接口测试
覆盖 草稿 -> 提交 -> 批改 -> 重新提交 的完整流程和管理员批改
"""
from app.models import Lesson, LessonReflection


def _headers(user):
    return {"X-User-Id": str(user.id)}


def _reflection_url(lesson, suffix=""):
    return f"/api/lessons/{lesson.id}/reflection{suffix}"


class TestStudentReflection:
    """学员反思操作"""

    def test_default_when_missing(self, client, user, lesson):
        response = client.get(_reflection_url(lesson), headers=_headers(user))
        assert response.status_code == 200
        assert response.json() == {
            "id": None,
            "reflection_text": "",
            "status": "draft",
            "score": None,
            "admin_feedback": None,
            "submitted_at": None,
            "marked_at": None,
            "created_at": None,
            "updated_at": None,
        }

    def test_save_draft(self, client, user, lesson):
        response = client.post(_reflection_url(lesson), headers=_headers(user), json={"reflection_text": "wip"})
        assert response.status_code == 200
        assert response.json() == {"message": "Reflection saved as draft"}

        body = client.get(_reflection_url(lesson), headers=_headers(user)).json()
        assert body["reflection_text"] == "wip"
        assert body["status"] == "draft"
        assert body["submitted_at"] is None

    def test_draft_requires_text(self, client, user, lesson):
        response = client.post(_reflection_url(lesson), headers=_headers(user), json={"reflection_text": ""})
        assert response.status_code == 400

    def test_submit_creates_row(self, client, user, lesson):
        response = client.post(_reflection_url(lesson, "/submit"), headers=_headers(user),
                               json={"reflection_text": "done"})
        assert response.status_code == 200

        body = client.get(_reflection_url(lesson), headers=_headers(user)).json()
        assert body["status"] == "submitted"
        assert body["submitted_at"] is not None

    def test_whitespace_submit_rejected(self, client, user, lesson, db_session):
        response = client.post(_reflection_url(lesson, "/submit"), headers=_headers(user),
                               json={"reflection_text": "   \n  "})
        assert response.status_code == 400
        assert response.json() == {"error": "Reflection text cannot be empty"}
        assert db_session.query(LessonReflection).count() == 0

    def test_resubmit_without_row_is_404(self, client, user, lesson):
        response = client.post(_reflection_url(lesson, "/resubmit"), headers=_headers(user),
                               json={"reflection_text": "again"})
        assert response.status_code == 404
        assert response.json() == {"error": "Reflection not found"}

    def test_draft_after_submit_returns_to_draft(self, client, user, lesson):
        client.post(_reflection_url(lesson, "/submit"), headers=_headers(user), json={"reflection_text": "v1"})
        client.post(_reflection_url(lesson), headers=_headers(user), json={"reflection_text": "v2"})

        body = client.get(_reflection_url(lesson), headers=_headers(user)).json()
        assert body["status"] == "draft"
        assert body["reflection_text"] == "v2"

    def test_unknown_lesson_is_400(self, client, user):
        response = client.post("/api/lessons/9999/reflection/submit", headers=_headers(user),
                               json={"reflection_text": "text"})
        assert response.status_code == 400
        assert response.json()["error"].startswith("Validation failed")

    def test_one_row_per_user_lesson(self, client, user, lesson, db_session):
        for text in ("a", "b", "c"):
            client.post(_reflection_url(lesson), headers=_headers(user), json={"reflection_text": text})
        client.post(_reflection_url(lesson, "/submit"), headers=_headers(user), json={"reflection_text": "d"})
        assert db_session.query(LessonReflection).count() == 1

    def test_existing_row_exposes_id_and_timestamps(self, client, user, lesson, db_session):
        client.post(_reflection_url(lesson), headers=_headers(user), json={"reflection_text": "draft"})
        row = db_session.query(LessonReflection).one()

        body = client.get(_reflection_url(lesson), headers=_headers(user)).json()
        assert body["id"] == row.id
        assert body["created_at"] is not None
        assert body["updated_at"] is not None


class TestMarking:
    """管理员批改"""

    def _submit(self, client, user, admin, lesson, text="my reflection"):
        client.post(_reflection_url(lesson, "/submit"), headers=_headers(user), json={"reflection_text": text})
        return client.get("/api/reflections/submitted", headers=_headers(admin)).json()

    def test_full_lifecycle(self, client, user, admin, lesson, db_session):
        queue = self._submit(client, user, admin, lesson)
        assert len(queue) == 1
        item = queue[0]
        assert item["user_name"] == user.name
        assert item["user_email"] == user.email
        assert item["lesson_title"] == lesson.title
        assert item["lesson_description"] == lesson.description

        response = client.post("/api/reflections/mark", headers=_headers(admin), json={
            "reflection_id": item["id"], "score": 8, "admin_feedback": "Nice work", "status": "marked",
        })
        assert response.status_code == 200
        assert response.json()["reflection"]["status"] == "marked"

        body = client.get(_reflection_url(lesson), headers=_headers(user)).json()
        assert body["status"] == "marked"
        assert body["score"] == 8
        assert body["admin_feedback"] == "Nice work"
        assert body["marked_at"] is not None

        # 批改后不在待批改队列中
        assert client.get("/api/reflections/submitted", headers=_headers(admin)).json() == []

        response = client.post(_reflection_url(lesson, "/resubmit"), headers=_headers(user),
                               json={"reflection_text": "improved"})
        assert response.status_code == 200
        body = client.get(_reflection_url(lesson), headers=_headers(user)).json()
        assert body["status"] == "submitted"
        assert body["reflection_text"] == "improved"

        queue = client.get("/api/reflections/submitted", headers=_headers(admin)).json()
        assert [q["id"] for q in queue] == [item["id"]]

    def test_reject(self, client, user, admin, lesson):
        item = self._submit(client, user, admin, lesson)[0]
        response = client.post("/api/reflections/mark", headers=_headers(admin), json={
            "reflection_id": item["id"], "score": 2, "admin_feedback": "Too short", "status": "rejected",
        })
        assert response.status_code == 200
        body = client.get(_reflection_url(lesson), headers=_headers(user)).json()
        assert body["status"] == "rejected"

    def test_queue_is_fifo(self, client, user, make_user, admin, lesson, db_session):
        second_lesson = Lesson(title="Generators", description="yield", level="intermediate")
        db_session.add(second_lesson)
        db_session.commit()
        other = make_user(name="Dan", email="dan@example.com")

        client.post(_reflection_url(second_lesson, "/submit"), headers=_headers(other),
                    json={"reflection_text": "first"})
        client.post(_reflection_url(lesson, "/submit"), headers=_headers(user),
                    json={"reflection_text": "second"})

        queue = client.get("/api/reflections/submitted", headers=_headers(admin)).json()
        assert [q["reflection_text"] for q in queue] == ["first", "second"]

    def test_drafts_not_in_queue(self, client, user, admin, lesson):
        client.post(_reflection_url(lesson), headers=_headers(user), json={"reflection_text": "draft"})
        assert client.get("/api/reflections/submitted", headers=_headers(admin)).json() == []

    def test_non_admin_cannot_mark(self, client, user, admin, lesson, db_session):
        item = self._submit(client, user, admin, lesson)[0]
        response = client.post("/api/reflections/mark", headers=_headers(user), json={
            "reflection_id": item["id"], "score": 10, "admin_feedback": "self-graded", "status": "marked",
        })
        assert response.status_code == 403
        assert response.json() == {"error": "Admin access required"}

        db_session.expire_all()
        reflection = db_session.get(LessonReflection, item["id"])
        assert reflection.status == "submitted"
        assert reflection.score is None

    def test_non_admin_cannot_list_queue(self, client, user):
        assert client.get("/api/reflections/submitted", headers=_headers(user)).status_code == 403

    def test_mark_validation(self, client, user, admin, lesson):
        item = self._submit(client, user, admin, lesson)[0]
        base = {"reflection_id": item["id"], "score": 5, "admin_feedback": "ok", "status": "marked"}

        for override, message in [
            ({"score": 11}, "Score must be between 0 and 10"),
            ({"score": -1}, "Score must be between 0 and 10"),
            ({"status": "submitted"}, "Status must be 'marked' or 'rejected'"),
            ({"admin_feedback": None}, "Reflection ID, score, and feedback are required"),
            ({"score": None}, "Reflection ID, score, and feedback are required"),
        ]:
            response = client.post("/api/reflections/mark", headers=_headers(admin), json={**base, **override})
            assert response.status_code == 400, override
            assert response.json() == {"error": message}

    def test_mark_unknown_reflection(self, client, admin):
        response = client.post("/api/reflections/mark", headers=_headers(admin), json={
            "reflection_id": 9999, "score": 5, "admin_feedback": "ok", "status": "marked",
        })
        assert response.status_code == 404
        assert response.json() == {"error": "Reflection not found"}
