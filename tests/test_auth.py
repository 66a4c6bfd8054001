import pytest

from tasktrail import config
from tasktrail.exceptions import Unauthorized
from tasktrail.utils.auth import create_token, validate_token, hash_password, verify_password


def test_register_and_login_success(client):
    email = "alice@example.com"
    password = "correct_horse_battery_staple"

    r = client.post("/auth/register", json={"email": email, "password": password, "name": "Alice"})
    assert r.status_code == 201
    data = r.json()
    assert data["user"]["email"] == email
    assert data["user"]["name"] == "Alice"
    assert len(data["user"]["id"]) == 36
    assert data["token"]
    assert "passwordHash" not in data["user"]

    r2 = client.post("/auth/login", json={"email": email, "password": password})
    assert r2.status_code == 200
    assert r2.json()["user"]["id"] == data["user"]["id"]
    assert validate_token(r2.json()["token"]).user_id == data["user"]["id"]


def test_register_duplicate_email_conflicts(client, make_user):
    make_user("Alice", email="dup@example.com")
    r = client.post(
        "/auth/register", json={"email": "dup@example.com", "password": "password456", "name": "Other"}
    )
    assert r.status_code == 409
    assert "already registered" in r.json()["detail"].lower()


def test_register_password_too_long(client):
    r = client.post(
        "/auth/register", json={"email": "long@example.com", "password": "a" * 100, "name": "Long"}
    )
    assert r.status_code == 422
    text = r.text.lower()
    assert "password" in text and ("too long" in text or "72" in text)


@pytest.mark.parametrize(
    "payload",
    [
        {"email": "not_an_email", "password": "password123", "name": "X"},
        {"email": "short@example.com", "password": "short", "name": "X"},
        {"email": "noname@example.com", "password": "password123", "name": "   "},
        {"password": "password123", "name": "X"},
    ],
)
def test_register_rejects_invalid_input(client, payload):
    r = client.post("/auth/register", json=payload)
    assert r.status_code == 422


def test_login_failures_are_indistinguishable(client, make_user):
    make_user("Alice", email="alice@example.com")

    wrong_password = client.post("/auth/login", json={"email": "alice@example.com", "password": "nope12345"})
    unknown_user = client.post("/auth/login", json={"email": "ghost@example.com", "password": "nope12345"})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json() == {"detail": "Invalid credentials"}


def test_login_with_too_long_password_fails(client, make_user):
    make_user("Alice", email="alice@example.com")
    r = client.post("/auth/login", json={"email": "alice@example.com", "password": "a" * 100})
    assert r.status_code == 401


def test_protected_route_requires_bearer_token(client):
    r = client.get("/tasks")
    assert r.status_code == 401
    assert r.headers["www-authenticate"] == "Bearer"


def test_client_supplied_user_header_is_not_an_identity(client, make_user):
    user, _ = make_user("Alice")
    r = client.get("/tasks", headers={"x-user-id": user["id"]})
    assert r.status_code == 401


def test_invalid_token_is_rejected(client):
    r = client.get("/tasks", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid token"


def test_expired_token_is_rejected(client, make_user, monkeypatch):
    user, _ = make_user("Alice")
    monkeypatch.setattr(config, "ACCESS_TOKEN_EXPIRE_MINUTES", -1)
    token = create_token(user["id"], user["email"])

    r = client.get("/tasks", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert "expired" in r.json()["detail"].lower()


def test_token_signed_with_other_secret_is_rejected(make_user, monkeypatch):
    user, _ = make_user("Alice")
    monkeypatch.setattr(config, "JWT_SECRET", "x" * 40)
    forged = create_token(user["id"], user["email"])
    monkeypatch.undo()

    with pytest.raises(Unauthorized):
        validate_token(forged)


def test_token_for_unknown_user_is_rejected(client):
    token = create_token("00000000-0000-0000-0000-000000000000", "ghost@example.com")
    r = client.get("/tasks", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_password_hash_roundtrip():
    hashed = hash_password("password123")
    assert hashed != "password123"
    assert verify_password("password123", hashed)
    assert not verify_password("password124", hashed)


def test_short_jwt_secret_fails_settings_check(monkeypatch):
    monkeypatch.setattr(config, "JWT_SECRET", "too-short")
    with pytest.raises(RuntimeError):
        config.validate_settings()
