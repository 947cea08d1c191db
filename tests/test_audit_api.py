from __future__ import annotations

from fastapi.testclient import TestClient


def test_mutations_are_audited(admin_client: TestClient, make_division) -> None:
    north = make_division("North")
    admin_client.patch(f"/api/divisions/{north['id']}", json={"name": "North East"})

    entries = admin_client.get("/api/audit-logs", params={"entityType": "division"}).json()["data"]

    assert [e["action"] for e in entries] == ["division_updated", "division_created"]
    updated = entries[0]
    assert updated["entityId"] == north["id"]
    assert updated["oldValues"]["name"] == "North"
    assert updated["newValues"]["name"] == "North East"
    assert updated["userAgent"] == "testclient"


def test_login_is_audited(admin_client: TestClient) -> None:
    entries = admin_client.get("/api/audit-logs", params={"action": "user_login"}).json()["data"]
    assert len(entries) == 1
    assert entries[0]["entityType"] == "user"


def test_audit_log_filters_and_limit(admin_client: TestClient, make_division) -> None:
    north = make_division("North")
    south = make_division("South")

    north_only = admin_client.get("/api/audit-logs", params={"divisionId": north["id"]}).json()
    assert {e["entityId"] for e in north_only["data"]} == {north["id"]}

    limited = admin_client.get("/api/audit-logs", params={"limit": 1}).json()["data"]
    assert len(limited) == 1
    assert limited[0]["entityId"] == south["id"]

    assert admin_client.get("/api/audit-logs", params={"limit": 501}).status_code == 400


def test_audit_log_is_admin_only(make_user) -> None:
    assert make_user("exco").get("/api/audit-logs").status_code == 403
