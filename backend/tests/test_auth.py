from fastapi.testclient import TestClient

from tourdesk.api.routes import auth as auth_routes
from tourdesk.main import app

from factories import make_user

client = TestClient(app)


def test_register_assigns_roles_from_email_lists(monkeypatch):
    monkeypatch.setattr(auth_routes.settings, "vadmin_emails_raw", "boss@example.com")
    monkeypatch.setattr(auth_routes.settings, "admin_emails_raw", "agent@example.com, boss@example.com")
    roles = {}
    for email in ("boss@example.com", "Agent@example.com", "guest@example.com"):
        r = client.post("/auth/register", json={"email": email, "password": "secret1", "full_name": "Someone"})
        assert r.status_code == 200, r.text
        roles[r.json()["email"]] = r.json()["role"]
    assert roles == {"boss@example.com": "vadmin", "agent@example.com": "admin", "guest@example.com": "user"}

    dup = client.post("/auth/register", json={"email": "boss@example.com", "password": "secret1", "full_name": "Again"})
    assert dup.status_code == 400


def test_login_returns_role_and_name():
    make_user("agent@example.com", role="admin")
    r = client.post("/auth/login-json", json={"email": "agent@example.com", "password": "testpass"})
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["role"] == "admin"
    assert data["full_name"] == "Agent"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.json()["email"] == "agent@example.com"

    form = client.post("/auth/login", data={"username": "agent@example.com", "password": "testpass"})
    assert form.status_code == 200


def test_login_failures():
    make_user("blocked@example.com", is_active=False)
    make_user("agent@example.com")
    assert client.post("/auth/login-json", json={"email": "agent@example.com", "password": "nope"}).status_code == 401
    assert client.post("/auth/login-json", json={"email": "ghost@example.com", "password": "testpass"}).status_code == 401
    assert client.post("/auth/login-json", json={"email": "blocked@example.com", "password": "testpass"}).status_code == 403


def test_health():
    r = client.get("/health/")
    assert r.status_code == 200
