from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tally.core.security import dummy_password_hash, verify_password
from tally.services import auth as auth_service
from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD, login


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_login_sets_httponly_cookie(client: TestClient) -> None:
    response = client.post(
        "/api/auth/login", json={"email": ADMIN_EMAIL.upper(), "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200, response.text
    cookie = response.headers["set-cookie"]
    assert "tally_session=" in cookie
    assert "HttpOnly" in cookie
    assert "samesite=lax" in cookie.lower()

    data = response.json()["data"]
    assert data["user"]["email"] == ADMIN_EMAIL
    assert data["user"]["role"] == "admin"
    assert data["seesAllDivisions"] is True
    assert "passwordHash" not in data["user"]


def test_bad_credentials_share_one_message(client: TestClient) -> None:
    wrong_password = client.post(
        "/api/auth/login", json={"email": ADMIN_EMAIL, "password": "nope"}
    )
    unknown_user = client.post(
        "/api/auth/login", json={"email": "ghost@example.com", "password": "nope"}
    )
    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json()
    assert wrong_password.json()["error"]["message"] == "Invalid credentials"


def test_protected_routes_need_a_session(client: TestClient) -> None:
    assert client.get("/api/auth/user").status_code == 401
    assert client.get("/api/contacts").status_code == 401
    client.cookies.set("tally_session", "forged-token")
    assert client.get("/api/auth/user").status_code == 401


def test_logout_ends_the_session(admin_client: TestClient) -> None:
    assert admin_client.get("/api/auth/user").status_code == 200
    response = admin_client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json() == {"message": "Logged out"}
    assert admin_client.get("/api/auth/user").status_code == 401


def test_registration_is_disabled(client: TestClient) -> None:
    response = client.post("/api/auth/register", json={"email": "x@example.com"})
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


def test_user_sees_only_member_divisions(make_division, make_user) -> None:
    north = make_division("North")
    make_division("South")
    member = make_user("user", [north["id"]])

    data = member.get("/api/auth/user").json()["data"]

    assert data["seesAllDivisions"] is False
    assert [d["id"] for d in data["divisions"]] == [north["id"]]


def test_select_division_outside_membership_is_forbidden(make_division, make_user) -> None:
    north = make_division("North")
    south = make_division("South")
    member = make_user("user", [north["id"]])

    assert member.post("/api/auth/division", json={"divisionId": south["id"]}).status_code == 403

    response = member.post("/api/auth/division", json={"divisionId": north["id"]})
    assert response.status_code == 200
    assert response.json()["data"]["selectedDivisionId"] == north["id"]
    assert member.get("/api/auth/user").json()["data"]["selectedDivisionId"] == north["id"]


def test_temporary_password_must_be_changed(client: TestClient, make_user) -> None:
    member = make_user("user")
    assert member.get("/api/auth/user").json()["data"]["user"]["mustChangePassword"] is True


def test_change_password(admin_client: TestClient) -> None:
    mismatch = admin_client.post(
        "/api/auth/change-password",
        json={
            "currentPassword": ADMIN_PASSWORD,
            "newPassword": "brand-new-secret",
            "confirmPassword": "something-else",
        },
    )
    assert mismatch.status_code == 400

    wrong_current = admin_client.post(
        "/api/auth/change-password",
        json={
            "currentPassword": "not-it",
            "newPassword": "brand-new-secret",
            "confirmPassword": "brand-new-secret",
        },
    )
    assert wrong_current.status_code == 400
    assert wrong_current.json()["error"]["errors"] == ["Current password is incorrect"]

    ok = admin_client.post(
        "/api/auth/change-password",
        json={
            "currentPassword": ADMIN_PASSWORD,
            "newPassword": "brand-new-secret",
            "confirmPassword": "brand-new-secret",
        },
    )
    assert ok.status_code == 200

    admin_client.post("/api/auth/logout")
    relogin = admin_client.post(
        "/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert relogin.status_code == 401
    login(admin_client, ADMIN_EMAIL, "brand-new-secret")


def test_update_profile_rejects_taken_email(admin_client: TestClient, make_user) -> None:
    make_user("uploader")

    taken = admin_client.patch(
        "/api/auth/profile",
        json={"firstName": "Ada", "lastName": "Admin", "email": "uploader1@example.com"},
    )
    assert taken.status_code == 409

    ok = admin_client.patch(
        "/api/auth/profile",
        json={"firstName": "Ada", "lastName": "Admin", "email": "Boss@Example.com"},
    )
    assert ok.status_code == 200
    assert ok.json()["data"]["email"] == "boss@example.com"
    assert ok.json()["data"]["firstName"] == "Ada"


def test_unknown_email_still_verifies_a_password_hash(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    checked: list[str] = []

    def counting_verify(password: str, password_hash: str) -> bool:
        checked.append(password_hash)
        return verify_password(password, password_hash)

    monkeypatch.setattr(auth_service, "verify_password", counting_verify)

    unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "x"})
    known = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "x"})

    assert unknown.status_code == known.status_code == 401
    assert len(checked) == 2
    assert checked[0] == dummy_password_hash()
    assert checked[1] != checked[0]
