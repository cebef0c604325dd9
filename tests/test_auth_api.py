from datetime import datetime, timedelta, timezone

import pytest

from app.modules.auth import service as auth_service
from app.modules.auth.models import User
from app.modules.auth.utils import hash_reset_token

from tests.conftest import TEST_PASSWORD

REGISTER_PAYLOAD = {
    "first_name": "Carla",
    "last_name": "Gómez",
    "email": "Carla@Example.com",
    "password": "supersecret",
}


def test_register_returns_tokens_and_user(client):
    response = client.post("/api/auth/register", json=REGISTER_PAYLOAD)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "carla@example.com"
    assert data["user"]["role"] == "user"
    assert "password" not in data["user"]


def test_register_duplicate_email(client):
    client.post("/api/auth/register", json=REGISTER_PAYLOAD)
    response = client.post("/api/auth/register", json=REGISTER_PAYLOAD)

    assert response.status_code == 400
    assert response.json()["errors"] == [{"field": "email", "message": "User already exists"}]


def test_register_validation(client):
    response = client.post(
        "/api/auth/register",
        json={"first_name": "C", "last_name": "Gómez", "email": "not-an-email", "password": "short"},
    )
    assert response.status_code == 400
    assert {e["field"] for e in response.json()["errors"]} == {"first_name", "email", "password"}


def test_login(client, user_a):
    response = client.post("/api/auth/login", json={"email": user_a.email, "password": TEST_PASSWORD})
    assert response.status_code == 200
    assert response.json()["data"]["user"]["id"] == str(user_a.id)


def test_login_bad_credentials(client, user_a):
    response = client.post("/api/auth/login", json={"email": user_a.email, "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json() == {"status": "error", "message": "Invalid email or password"}


def test_refresh_rotates_token(client, user_a):
    tokens = client.post(
        "/api/auth/login", json={"email": user_a.email, "password": TEST_PASSWORD}
    ).json()["data"]

    rotated = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert rotated.status_code == 200
    new_refresh = rotated.json()["data"]["refresh_token"]
    assert new_refresh != tokens["refresh_token"]

    # the previous refresh token is no longer stored
    replay = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert replay.status_code == 401


def test_refresh_rejects_access_token(client, user_a, headers_a):
    access_token = headers_a["Authorization"].split()[1]
    response = client.post("/api/auth/refresh", json={"refresh_token": access_token})
    assert response.status_code == 401


def test_profile_and_logout(client, user_a):
    tokens = client.post(
        "/api/auth/login", json={"email": user_a.email, "password": TEST_PASSWORD}
    ).json()["data"]
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    profile = client.get("/api/users/profile", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["data"]["email"] == user_a.email

    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    refresh = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refresh.status_code == 401


class Outbox(list):
    """Captured template emails; delivery succeeds unless `fail` is set."""
    fail = False


@pytest.fixture
def outbox(monkeypatch):
    sent = Outbox()

    def fake_send(**kwargs):
        sent.append(kwargs)
        return not sent.fail

    monkeypatch.setattr(auth_service.email_service, "send_template_email", fake_send)
    return sent


def _reset_token(mail) -> str:
    return mail["context"]["reset_url"].rsplit("/", 1)[1]


def _login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_forgot_password_sends_reset_link(client, db, user_a, outbox):
    response = client.post("/api/auth/forgotpassword", json={"email": "ANA@example.com"})

    assert response.status_code == 200
    assert response.json() == {"status": "success", "data": "Email sent"}
    assert len(outbox) == 1
    mail = outbox[0]
    assert mail["to_emails"] == [user_a.email]
    assert mail["template_name"] == "password_reset.html"
    assert mail["context"]["reset_url"].startswith("http://testserver/api/auth/resetpassword/")

    db.refresh(user_a)
    # only the digest is stored
    assert user_a.reset_password_token == hash_reset_token(_reset_token(mail))
    assert user_a.reset_password_expire is not None


def test_forgot_password_unknown_email(client, user_a, outbox):
    response = client.post("/api/auth/forgotpassword", json={"email": "nadie@example.com"})

    assert response.status_code == 404
    assert response.json() == {"status": "error", "message": "User not found"}
    assert outbox == []


def test_forgot_password_email_failure_discards_token(client, db, user_a, outbox):
    outbox.fail = True

    response = client.post("/api/auth/forgotpassword", json={"email": user_a.email})

    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": "Email could not be sent"}
    db.refresh(user_a)
    assert user_a.reset_password_token is None
    assert user_a.reset_password_expire is None


def test_reset_password_changes_password_once(client, db, user_a, outbox):
    old_refresh = _login(client, user_a.email, TEST_PASSWORD).json()["data"]["refresh_token"]
    client.post("/api/auth/forgotpassword", json={"email": user_a.email})
    token = _reset_token(outbox[0])

    response = client.put(f"/api/auth/resetpassword/{token}", json={"password": "newpassword1"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["access_token"]
    assert data["user"]["email"] == user_a.email

    assert _login(client, user_a.email, TEST_PASSWORD).status_code == 401
    assert _login(client, user_a.email, "newpassword1").status_code == 200
    # previous sessions can no longer refresh
    assert client.post("/api/auth/refresh", json={"refresh_token": old_refresh}).status_code == 401

    replay = client.put(f"/api/auth/resetpassword/{token}", json={"password": "anotherpass"})
    assert replay.status_code == 400
    assert replay.json()["errors"] == [{"field": "token", "message": "Invalid token"}]


def test_reset_password_expired_token(client, db, user_a, outbox):
    client.post("/api/auth/forgotpassword", json={"email": user_a.email})
    token = _reset_token(outbox[0])

    user = db.query(User).filter(User.id == user_a.id).one()
    user.reset_password_expire = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()

    response = client.put(f"/api/auth/resetpassword/{token}", json={"password": "newpassword1"})

    assert response.status_code == 400
    assert _login(client, user_a.email, TEST_PASSWORD).status_code == 200


def test_reset_password_validates_new_password(client, user_a, outbox):
    client.post("/api/auth/forgotpassword", json={"email": user_a.email})
    token = _reset_token(outbox[0])

    response = client.put(f"/api/auth/resetpassword/{token}", json={"password": "short"})

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "password"
