"""Tests for the account endpoints."""

from fastapi.testclient import TestClient


def _register(client: TestClient, email: str, role: str = "student", password: str = "pwd1"):
    return client.post(
        "/api/users/register",
        json={"email": email, "password": password, "full_name": "Test User", "role": role},
    )


def test_register_student(client: TestClient):
    response = _register(client, "s1@ex.com")
    assert response.status_code == 201
    data = response.json()
    assert data["access_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "s1@ex.com"
    assert data["user"]["role"] == "student"
    assert "hashed_password" not in data["user"]


def test_register_faculty(client: TestClient):
    response = _register(client, "f1@ex.com", role="faculty")
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "faculty"


def test_register_duplicate_email(client: TestClient):
    _register(client, "dup@ex.com")
    response = _register(client, "dup@ex.com", password="other")
    assert response.status_code == 409
    assert "already registered" in response.json()["detail"].lower()


def test_register_rejects_unknown_role(client: TestClient):
    assert _register(client, "x@ex.com", role="admin").status_code == 422


def test_register_rejects_overlong_password(client: TestClient):
    assert _register(client, "long@ex.com", password="p" * 73).status_code == 422


def test_login(client: TestClient):
    _register(client, "login@ex.com")
    response = client.post("/api/users/login", json={"email": "login@ex.com", "password": "pwd1"})
    assert response.status_code == 200
    assert response.json()["access_token"]


def test_login_wrong_password(client: TestClient):
    _register(client, "wrong@ex.com")
    response = client.post("/api/users/login", json={"email": "wrong@ex.com", "password": "nope"})
    assert response.status_code == 401


def test_me(client: TestClient):
    token = _register(client, "me@ex.com", role="faculty").json()["access_token"]
    response = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "me@ex.com"


def test_me_requires_token(client: TestClient):
    assert client.get("/api/users/me").status_code == 401
    bad = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401


def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
