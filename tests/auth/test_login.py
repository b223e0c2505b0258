"""
Tests for login, session tokens and the bearer-protected profile endpoint.
"""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from clinic.auth.exceptions import InvalidCredentialsException
from clinic.auth.models import UserRole
from clinic.auth.service import login_user
from clinic.core.security import create_access_token, dummy_password_hash, verify_access_token

CREDENTIALS = {"email": "a@x.com", "password": "pw123456"}


@pytest.fixture
def registered(client):
    response = client.post(
        "/api/register",
        json=dict(CREDENTIALS, firstName="A", lastName="B", role="patient"),
    )
    assert response.status_code == 201
    return response.json()["user"]


def test_login_returns_token_for_registered_account(client, registered, test_settings):
    response = client.post("/api/login", json=CREDENTIALS)
    assert response.status_code == 200
    data = response.json()
    assert data["tokenType"] == "bearer"
    assert data["user"]["id"] == registered["id"]

    payload = verify_access_token(data["token"], test_settings.secret_key)
    assert payload.account_id == registered["id"]
    assert payload.role is UserRole.PATIENT


def test_wrong_password_and_unknown_email_look_identical(client, registered):
    wrong_password = client.post("/api/login", json=dict(CREDENTIALS, password="nope"))
    unknown_email = client.post("/api/login", json={"email": "ghost@x.com", "password": "pw123456"})
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"detail": "Invalid credentials"}


def test_bootstrap_admin_can_log_in(client):
    response = client.post("/api/login", json={"email": "admin@clinic.com", "password": "admin123"})
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"


def test_login_service_raises_same_exception(register, db, test_settings):
    register("svc@x.com")
    for email, password in [("svc@x.com", "wrong"), ("nobody@x.com", "pw123456")]:
        with pytest.raises(InvalidCredentialsException) as exc_info:
            asyncio.run(login_user(db, test_settings, email=email, password=password))
        assert exc_info.value.detail == "Invalid credentials"


def test_me_returns_token_owner(client, registered):
    token = client.post("/api/login", json=CREDENTIALS).json()["token"]
    response = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "a@x.com"


def test_me_rejects_all_token_failures_uniformly(client, registered, test_settings):
    valid = client.post("/api/login", json=CREDENTIALS).json()["token"]
    expired = create_access_token(
        registered["id"], UserRole.PATIENT, test_settings.secret_key,
        now=datetime.now(timezone.utc) - timedelta(days=8),
    )
    wrong_key = create_access_token(registered["id"], UserRole.PATIENT, "another-key")
    unknown_account = create_access_token("no-such-account", UserRole.PATIENT, test_settings.secret_key)
    header, payload, signature = valid.split(".")
    tampered = ".".join([header, payload, signature[:5] + ("A" if signature[5] != "A" else "B") + signature[6:]])

    bodies = []
    for token in [expired, wrong_key, unknown_account, tampered, "garbage"]:
        response = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        bodies.append(response.json())
    assert all(body == {"detail": "Could not validate credentials"} for body in bodies)


def test_me_without_token(client):
    assert client.get("/api/me").status_code == 401


def test_unknown_email_burns_configured_work_factor(db, test_settings, monkeypatch):
    """
    The dummy verification for an unknown email costs as much as a real one.
    """
    costs = []

    def recording_dummy_hash(rounds):
        costs.append(rounds)
        return dummy_password_hash(rounds)

    monkeypatch.setattr("clinic.auth.service.dummy_password_hash", recording_dummy_hash)
    with pytest.raises(InvalidCredentialsException):
        asyncio.run(login_user(db, test_settings, email="ghost@x.com", password="pw123456"))
    assert costs == [test_settings.bcrypt_rounds]
