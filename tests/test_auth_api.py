# tests/test_auth_api.py
# PURPOSE: register/login/me over HTTP, token verification and rate limits.

from typing import Dict, Tuple

from taskwave.auth import create_access_token, verify_token
from taskwave.config import settings


def _register(client, username="alice", email="alice@x.com", password="secret1") -> Tuple[str, Dict]:
    """Helper: register a user and return (token, public user)."""
    r = client.post("/api/register", json={"username": username, "email": email, "password": password})
    assert r.status_code == 201, r.text
    body = r.json()
    return body["token"], body["user"]


def test_register_returns_token_and_public_user(client, user_store):
    r = client.post(
        "/api/register", json={"username": "alice", "email": "alice@x.com", "password": "secret1"}
    )
    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "User registered successfully"
    assert body["token"]
    assert set(body["user"]) == {"id", "username", "email"}
    assert body["user"]["username"] == "alice"

    # Stored record keeps only a bcrypt hash
    [stored] = user_store.load()
    assert stored["password"] != "secret1"
    assert stored["password"].startswith("$2")
    assert stored["createdAt"].endswith("Z")


def test_register_short_password_creates_nothing(client, user_store):
    r = client.post("/api/register", json={"username": "bob", "email": "bob@x.com", "password": "12345"})
    assert r.status_code == 400
    assert r.json()["error"] == "Password must be at least 6 characters"
    assert user_store.load() == []


def test_register_missing_field(client, user_store):
    r = client.post("/api/register", json={"username": "bob", "password": "secret1"})
    assert r.status_code == 400
    assert r.json()["error"] == "All fields are required"
    assert user_store.load() == []


def test_register_duplicate_email_and_username(client):
    _register(client)

    r_email = client.post(
        "/api/register", json={"username": "other", "email": "alice@x.com", "password": "another-pass"}
    )
    assert r_email.status_code == 400
    assert r_email.json()["error"] == "User with this email already exists"

    r_name = client.post(
        "/api/register", json={"username": "alice", "email": "new@x.com", "password": "another-pass"}
    )
    assert r_name.status_code == 400
    assert r_name.json()["error"] == "Username already taken"


def test_login_token_carries_user_id(client):
    _, user = _register(client)

    r = client.post("/api/login", json={"email": "alice@x.com", "password": "secret1"})
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Login successful"
    assert body["user"] == user
    assert verify_token(body["token"]).id == user["id"]


def test_login_failures_share_one_message(client):
    _register(client)

    wrong_pw = client.post("/api/login", json={"email": "alice@x.com", "password": "nope-nope"})
    unknown = client.post("/api/login", json={"email": "ghost@x.com", "password": "secret1"})

    assert wrong_pw.status_code == unknown.status_code == 401
    assert wrong_pw.json()["error"] == unknown.json()["error"] == "Invalid email or password"


def test_login_requires_both_fields(client):
    r = client.post("/api/login", json={"email": "alice@x.com"})
    assert r.status_code == 400


def test_me_returns_public_user(client):
    token, user = _register(client)
    r = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json() == user


def test_me_without_token_is_401(client):
    r = client.get("/api/me")
    assert r.status_code == 401
    assert r.json()["error"] == "Access token required"


def test_me_with_garbage_token_is_403(client):
    r = client.get("/api/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 403
    assert r.json()["error"] == "Invalid or expired token"


def test_expired_token_is_rejected(client, monkeypatch):
    _, user = _register(client)
    monkeypatch.setattr(settings, "JWT_EXPIRE_MIN", -5)
    expired = create_access_token(user)

    r = client.get("/api/tasks", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 403


def test_me_after_user_removed_is_404_but_tasks_still_open(client, user_store):
    token, _ = _register(client)
    user_store.save([])

    r = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 404
    assert r.json()["error"] == "User not found"

    # Task endpoints trust the token alone
    r_tasks = client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
    assert r_tasks.status_code == 200


def test_register_rate_limit(client):
    # Limit counts attempts, valid or not
    for _ in range(5):
        r = client.post("/api/register", json={"username": "x", "email": "x@x.com", "password": "1"})
        assert r.status_code == 400

    r_limit = client.post("/api/register", json={"username": "x", "email": "x@x.com", "password": "1"})
    assert r_limit.status_code == 429


def test_rate_limit_key_honours_trusted_proxy(monkeypatch):
    from starlette.requests import Request

    from taskwave.rate_limit import client_key

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/login",
        "headers": [(b"x-forwarded-for", b"203.0.113.7, 10.0.0.1")],
        "client": ("10.0.0.1", 5000),
    }
    assert client_key(Request(scope)) == "10.0.0.1"

    monkeypatch.setattr(settings, "TRUST_FORWARDED_FOR", True)
    assert client_key(Request(scope)) == "203.0.113.7"


def test_register_blank_username_or_email_creates_nothing(client, user_store):
    r = client.post("/api/register", json={"username": "   ", "email": " ", "password": "secret1"})
    assert r.status_code == 400
    assert r.json()["error"] == "All fields are required"
    assert user_store.load() == []
