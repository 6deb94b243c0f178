"""Integration tests for quiz authoring, listing and availability endpoints."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from kambaz_quizzes.services.quiz_store import QuizStore

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


# ── Helpers ────────────────────────────────────────────────────────────────────


def _register_and_login(client: TestClient, role: str = "student") -> str:
    """Create a user and return their JWT token."""
    email = f"{role}_{uuid.uuid4().hex[:8]}@ex.com"
    client.post(
        "/api/users/register",
        json={"email": email, "password": "testpwd1", "full_name": f"Test {role.title()}", "role": role},
    )
    resp = client.post("/api/users/login", json={"email": email, "password": "testpwd1"})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


QUESTIONS = [
    {
        "id": "q1",
        "type": "multiple-choice",
        "title": "Sum",
        "text": "2 + 2?",
        "points": 10,
        "choices": ["4", "5", "22"],
        "correct_answers": ["4"],
    },
    {"id": "q2", "type": "true-false", "title": "Sky", "text": "The sky is blue", "points": 5, "correct_answer": True},
]


def _create_quiz(client: TestClient, token: str, **overrides) -> dict:
    body = {"course_id": "CS5610", "title": "Week 1", "questions": QUESTIONS}
    body.update(overrides)
    resp = client.post("/api/quizzes/", json=body, headers=_auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def faculty_token(client: TestClient) -> str:
    return _register_and_login(client, "faculty")


@pytest.fixture
def student_token(client: TestClient) -> str:
    return _register_and_login(client, "student")


# ── Authoring ─────────────────────────────────────────────────────────────────


class TestAuthoring:
    def test_create_quiz(self, client: TestClient, faculty_token: str):
        quiz = _create_quiz(client, faculty_token)
        assert quiz["title"] == "Week 1"
        assert quiz["total_points"] == 15
        assert quiz["published"] is False
        assert quiz["time_limit_minutes"] == 20
        mc = quiz["questions"][0]
        assert mc["type"] == "multiple-choice"
        assert len(mc["correct_choice_ids"]) == 1
        assert [c["text"] for c in mc["choices"]] == ["4", "5", "22"]

    def test_students_cannot_author(self, client: TestClient, student_token: str):
        resp = client.post("/api/quizzes/", json={"course_id": "CS5610"}, headers=_auth(student_token))
        assert resp.status_code == 403

    def test_invalid_question_rejected(self, client: TestClient, faculty_token: str):
        bad = [{"type": "multiple-choice", "points": 1, "choices": ["only"], "correct_answers": ["only"]}]
        resp = client.post(
            "/api/quizzes/", json={"course_id": "CS5610", "questions": bad}, headers=_auth(faculty_token)
        )
        assert resp.status_code == 422

    def test_get_full_quiz_as_faculty(self, client: TestClient, faculty_token: str):
        quiz = _create_quiz(client, faculty_token)
        resp = client.get(f"/api/quizzes/{quiz['id']}", headers=_auth(faculty_token))
        assert resp.status_code == 200
        assert resp.json()["questions"][1]["correct_answer"] is True

    def test_update_settings_keeps_questions(self, client: TestClient, faculty_token: str):
        quiz = _create_quiz(client, faculty_token)
        resp = client.put(
            f"/api/quizzes/{quiz['id']}",
            json={"title": "Week 1 (revised)", "multiple_attempts": True, "max_attempts": 3},
            headers=_auth(faculty_token),
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["title"] == "Week 1 (revised)"
        assert data["max_attempts"] == 3
        assert [q["id"] for q in data["questions"]] == ["q1", "q2"]

    def test_update_replaces_questions(self, client: TestClient, faculty_token: str):
        quiz = _create_quiz(client, faculty_token)
        new_questions = [
            {"id": "q2", "type": "fill-in-blank", "points": 4, "accepted_answers": ["Paris"]},
        ]
        resp = client.put(
            f"/api/quizzes/{quiz['id']}", json={"questions": new_questions}, headers=_auth(faculty_token)
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["total_points"] == 4
        assert data["questions"][0]["type"] == "fill-in-blank"

    def test_update_with_bad_window_is_rejected(self, client: TestClient, faculty_token: str):
        quiz = _create_quiz(client, faculty_token, available_date=NOW.isoformat())
        resp = client.put(
            f"/api/quizzes/{quiz['id']}",
            json={"until_date": (NOW - timedelta(days=1)).isoformat()},
            headers=_auth(faculty_token),
        )
        assert resp.status_code == 422
        assert resp.json()["error_code"] == "invalid_quiz"

    def test_publish_and_unpublish(self, client: TestClient, faculty_token: str):
        quiz = _create_quiz(client, faculty_token)
        url = f"/api/quizzes/{quiz['id']}/publish"
        assert client.patch(url, json={"published": True}, headers=_auth(faculty_token)).json()["published"]
        assert not client.patch(url, json={"published": False}, headers=_auth(faculty_token)).json()["published"]

    def test_delete(self, client: TestClient, faculty_token: str):
        quiz = _create_quiz(client, faculty_token)
        resp = client.delete(f"/api/quizzes/{quiz['id']}", headers=_auth(faculty_token))
        assert resp.status_code == 204
        missing = client.get(f"/api/quizzes/{quiz['id']}", headers=_auth(faculty_token))
        assert missing.status_code == 404
        assert missing.json()["error_code"] == "quiz_not_found"

    def test_preview_grades_without_storing(self, client: TestClient, faculty_token: str):
        quiz = _create_quiz(client, faculty_token)
        resp = client.post(
            f"/api/quizzes/{quiz['id']}/preview",
            json={"answers": {"q1": "4", "q2": "False"}},
            headers=_auth(faculty_token),
        )
        assert resp.status_code == 200, resp.text
        report = resp.json()
        assert report["score"] == 10
        assert report["percentage"] == 66.7
        assert report["letter_grade"] == "D"
        assert report["attempt_id"] is None
        assert len(report["question_breakdown"]) == 2

        attempts = client.get(f"/api/quizzes/{quiz['id']}/attempts", headers=_auth(faculty_token))
        assert attempts.json() == []


# ── Listing & student view ────────────────────────────────────────────────────


class TestStudentView:
    def test_students_list_published_only(self, client: TestClient, faculty_token: str, student_token: str):
        draft = _create_quiz(client, faculty_token, title="Draft")
        live = _create_quiz(client, faculty_token, title="Live", published=True)

        as_faculty = client.get("/api/quizzes/?course_id=CS5610", headers=_auth(faculty_token)).json()
        assert {q["id"] for q in as_faculty} == {draft["id"], live["id"]}

        as_student = client.get("/api/quizzes/?course_id=CS5610", headers=_auth(student_token)).json()
        assert [q["id"] for q in as_student] == [live["id"]]
        assert as_student[0]["availability"] == "Available"
        assert as_student[0]["question_count"] == 2

    def test_list_search_and_labels(self, client: TestClient, faculty_token: str):
        _create_quiz(client, faculty_token, title="Closed one", until_date=(NOW - timedelta(days=1)).isoformat())
        _create_quiz(client, faculty_token, title="Later one", available_date="2026-04-01T09:00:00Z")
        _create_quiz(client, faculty_token, title="Other course", course_id="CS4550")

        rows = client.get("/api/quizzes/?course_id=CS5610&search=ONE", headers=_auth(faculty_token)).json()
        labels = {r["title"]: r["availability"] for r in rows}
        assert labels == {"Closed one": "Closed", "Later one": "Not available until 2026-04-01"}

    def test_student_view_has_no_answers(self, client: TestClient, faculty_token: str, student_token: str):
        quiz = _create_quiz(client, faculty_token, published=True, access_code="abc")
        resp = client.get(f"/api/quizzes/{quiz['id']}", headers=_auth(student_token))
        assert resp.status_code == 200
        view = resp.json()
        assert view["requires_access_code"] is True
        assert "access_code" not in view
        assert "correct_choice_ids" not in view["questions"][0]
        assert "correct_answer" not in view["questions"][1]
        assert len(view["questions"][0]["choices"]) == 3

    def test_unpublished_quiz_hidden_from_students(self, client: TestClient, faculty_token: str, student_token: str):
        quiz = _create_quiz(client, faculty_token)
        assert client.get(f"/api/quizzes/{quiz['id']}", headers=_auth(student_token)).status_code == 404

    def test_requires_login(self, client: TestClient):
        assert client.get("/api/quizzes/").status_code == 401


# ── Availability ──────────────────────────────────────────────────────────────


class TestAvailability:
    def test_available(self, client: TestClient, faculty_token: str, student_token: str):
        quiz = _create_quiz(client, faculty_token, published=True)
        resp = client.get(f"/api/quizzes/{quiz['id']}/availability", headers=_auth(student_token))
        assert resp.status_code == 200
        assert resp.json() == {
            "allowed": True,
            "reason": None,
            "message": None,
            "date": None,
            "attempts_used": 0,
            "attempts_allowed": 1,
        }

    def test_not_yet_available(self, client: TestClient, faculty_token: str, student_token: str):
        opens = NOW + timedelta(days=3)
        quiz = _create_quiz(client, faculty_token, published=True, available_date=opens.isoformat())
        data = client.get(f"/api/quizzes/{quiz['id']}/availability", headers=_auth(student_token)).json()
        assert data["allowed"] is False
        assert data["reason"] == "not_yet_available"
        assert data["date"] is not None

    def test_access_code_checked(self, client: TestClient, faculty_token: str, student_token: str):
        quiz = _create_quiz(client, faculty_token, published=True, access_code="abc")
        url = f"/api/quizzes/{quiz['id']}/availability"
        assert client.get(url, headers=_auth(student_token)).json()["reason"] == "bad_access_code"
        assert client.get(f"{url}?access_code=abc", headers=_auth(student_token)).json()["allowed"] is True

    def test_faculty_use_preview_instead(self, client: TestClient, faculty_token: str):
        quiz = _create_quiz(client, faculty_token, published=True)
        resp = client.get(f"/api/quizzes/{quiz['id']}/availability", headers=_auth(faculty_token))
        assert resp.status_code == 403

    def test_multi_attempt_quiz_loaded_once(
        self, client: TestClient, faculty_token: str, student_token: str, monkeypatch
    ):
        quiz = _create_quiz(client, faculty_token, published=True, multiple_attempts=True, max_attempts=3)
        fetched = []
        original = QuizStore.fetch_quiz

        def _counting_fetch(store, quiz_id):
            fetched.append(quiz_id)
            return original(store, quiz_id)

        monkeypatch.setattr(QuizStore, "fetch_quiz", _counting_fetch)
        data = client.get(f"/api/quizzes/{quiz['id']}/availability", headers=_auth(student_token)).json()
        assert data["attempts_allowed"] == 3
        assert len(fetched) == 1
