from __future__ import annotations

from fastapi.testclient import TestClient

from tally.services.reports import percentage


def test_percentage_rounds_half_up() -> None:
    assert percentage(0, 0) == 0
    assert percentage(1, 2) == 50
    assert percentage(1, 8) == 13
    assert percentage(2, 3) == 67
    assert percentage(3, 3) == 100


def test_company_stats(admin_client: TestClient, make_division, make_user) -> None:
    north = make_division("North", description="Northern office")
    south = make_division("South")
    closed = make_division("Closed", isActive=False)
    for email in ("a@example.com", "b@example.com", "c@example.com"):
        admin_client.post("/api/contacts", json={"divisionId": north["id"], "email": email})
    admin_client.post("/api/contacts", json={"divisionId": south["id"], "phone": "555"})
    make_user("uploader", [north["id"]])
    make_user("user", [north["id"], south["id"]])

    response = admin_client.get("/api/company-stats")

    assert response.status_code == 200, response.text
    stats = response.json()["data"]
    assert stats["totalContacts"] == 4
    assert stats["totalDivisions"] == 2
    assert stats["totalActiveUsers"] == 3
    assert stats["totalEmails"] == 3
    assert stats["totalPhones"] == 1

    by_name = {d["divisionName"]: d for d in stats["divisionStats"]}
    assert set(by_name) == {"North", "South"}
    assert closed["id"] not in {d["divisionId"] for d in stats["divisionStats"]}
    assert by_name["North"]["contactCount"] == 3
    assert by_name["North"]["sharePercentage"] == 75
    assert by_name["North"]["activeUsers"] == 2
    assert by_name["North"]["description"] == "Northern office"
    assert by_name["South"]["sharePercentage"] == 25
    assert by_name["South"]["phoneCount"] == 1


def test_recent_uploads_count_completed_imports(
    admin_client: TestClient, make_division, csv_bytes
) -> None:
    north = make_division("North")
    stored = admin_client.post(
        "/api/uploads",
        files={"file": ("p.csv", csv_bytes("Email", "a@example.com"), "text/csv")},
        data={"divisionId": north["id"]},
    ).json()["data"]
    admin_client.patch(
        f"/api/uploads/{stored['id']}",
        json={"status": "processing", "fieldMapping": {"Email": "email"}},
    )

    stats = admin_client.get("/api/company-stats").json()["data"]

    assert stats["totalUploads"] == 1
    assert stats["divisionStats"][0]["recentUploads"] == 1


def test_company_stats_is_for_admin_and_exco(make_user) -> None:
    assert make_user("exco").get("/api/company-stats").status_code == 200
    assert make_user("uploader").get("/api/company-stats").status_code == 403
    assert make_user("user").get("/api/company-stats").status_code == 403
