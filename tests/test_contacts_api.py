from __future__ import annotations

from fastapi.testclient import TestClient


def _contact(client: TestClient, division_id: str, **fields) -> dict:
    response = client.post("/api/contacts", json={"divisionId": division_id, **fields})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_read_update(admin_client: TestClient, make_division) -> None:
    north = make_division("North")
    created = _contact(
        admin_client, north["id"], firstName="Ada", email="ada@example.com", customFields={"tier": "gold"}
    )
    assert created["isActive"] is True
    assert created["customFields"] == {"tier": "gold"}

    updated = admin_client.patch(f"/api/contacts/{created['id']}", json={"company": "Engines Ltd"})
    assert updated.status_code == 200, updated.text
    assert updated.json()["data"]["company"] == "Engines Ltd"
    assert updated.json()["data"]["firstName"] == "Ada"

    fetched = admin_client.get(f"/api/contacts/{created['id']}").json()["data"]
    assert fetched["company"] == "Engines Ltd"


def test_listing_is_scoped_to_memberships(admin_client: TestClient, make_division, make_user) -> None:
    north = make_division("North")
    south = make_division("South")
    _contact(admin_client, north["id"], email="n@example.com")
    hidden = _contact(admin_client, south["id"], email="s@example.com")
    member = make_user("user", [north["id"]])

    listed = member.get("/api/contacts").json()
    assert listed["meta"]["total"] == 1
    assert listed["data"][0]["email"] == "n@example.com"

    assert member.get("/api/contacts", params={"divisionId": south["id"]}).status_code == 403
    assert member.get(f"/api/contacts/{hidden['id']}").status_code == 404
    assert admin_client.get("/api/contacts").json()["meta"]["total"] == 2


def test_search_and_pagination(admin_client: TestClient, make_division) -> None:
    north = make_division("North")
    _contact(admin_client, north["id"], firstName="Ada", email="ada@example.com")
    _contact(admin_client, north["id"], firstName="Grace", company="US Navy")
    _contact(admin_client, north["id"], firstName="Alan", phone="+44 555")

    found = admin_client.get("/api/contacts", params={"search": "NAVY"}).json()
    assert found["meta"]["total"] == 1
    assert found["data"][0]["firstName"] == "Grace"

    page = admin_client.get("/api/contacts", params={"limit": 2, "offset": 2}).json()
    assert page["meta"] == {"total": 3, "limit": 2, "offset": 2}
    assert len(page["data"]) == 1


def test_readers_cannot_write(admin_client: TestClient, make_division, make_user) -> None:
    north = make_division("North")
    contact = _contact(admin_client, north["id"], email="a@example.com")
    for role in ("user", "exco"):
        reader = make_user(role, [north["id"]])
        assert reader.post("/api/contacts", json={"divisionId": north["id"]}).status_code == 403
        assert reader.delete(f"/api/contacts/{contact['id']}").status_code == 403


def test_uploader_writes_only_in_member_divisions(make_division, make_user) -> None:
    north = make_division("North")
    south = make_division("South")
    uploader = make_user("uploader", [north["id"]])

    assert uploader.post("/api/contacts", json={"divisionId": north["id"]}).status_code == 201
    assert uploader.post("/api/contacts", json={"divisionId": south["id"]}).status_code == 403


def test_delete_is_soft_and_idempotent(admin_client: TestClient, make_division) -> None:
    north = make_division("North")
    contact = _contact(admin_client, north["id"], email="a@example.com")

    assert admin_client.delete(f"/api/contacts/{contact['id']}").status_code == 204
    assert admin_client.delete(f"/api/contacts/{contact['id']}").status_code == 204
    assert admin_client.delete("/api/contacts/never-existed").status_code == 204

    assert admin_client.get(f"/api/contacts/{contact['id']}").status_code == 404
    assert admin_client.get("/api/contacts").json()["meta"]["total"] == 0

    deletions = admin_client.get("/api/audit-logs", params={"action": "contact_deleted"}).json()
    assert len(deletions["data"]) == 1


def test_bulk_delete_counts_only_changed_rows(
    admin_client: TestClient, make_division, make_user
) -> None:
    north = make_division("North")
    south = make_division("South")
    a = _contact(admin_client, north["id"], email="a@example.com")
    b = _contact(admin_client, north["id"], email="b@example.com")
    other = _contact(admin_client, south["id"], email="c@example.com")
    uploader = make_user("uploader", [north["id"]])

    response = uploader.post(
        "/api/contacts/bulk-delete", json={"ids": [a["id"], a["id"], b["id"], other["id"], "nope"]}
    )
    assert response.status_code == 200, response.text
    assert response.json() == {"data": {"deleted": 2}}

    remaining = admin_client.get("/api/contacts").json()["data"]
    assert [c["id"] for c in remaining] == [other["id"]]

    again = uploader.post("/api/contacts/bulk-delete", json={"ids": [a["id"]]})
    assert again.json()["data"]["deleted"] == 0


def test_bulk_delete_needs_ids(admin_client: TestClient) -> None:
    assert admin_client.post("/api/contacts/bulk-delete", json={"ids": []}).status_code == 400


def test_category_must_match_division(admin_client: TestClient, make_division) -> None:
    north = make_division("North")
    south = make_division("South")
    south_only = admin_client.post(
        "/api/contact-categories", json={"name": "Suppliers", "divisionId": south["id"]}
    ).json()["data"]
    shared = admin_client.post("/api/contact-categories", json={"name": "VIP"}).json()["data"]

    wrong = admin_client.post(
        "/api/contacts", json={"divisionId": north["id"], "categoryId": south_only["id"]}
    )
    assert wrong.status_code == 400

    ok = admin_client.post("/api/contacts", json={"divisionId": north["id"], "categoryId": shared["id"]})
    assert ok.status_code == 201


def test_contact_stats(admin_client: TestClient, make_division) -> None:
    north = make_division("North")
    vip = admin_client.post(
        "/api/contact-categories", json={"name": "VIP", "divisionId": north["id"]}
    ).json()["data"]
    _contact(admin_client, north["id"], email="a@example.com", phone="1", categoryId=vip["id"])
    _contact(admin_client, north["id"], email="b@example.com", address="1 Road")
    _contact(admin_client, north["id"], company="Acme", customFields={"x": "1"})

    stats = admin_client.get("/api/contacts/stats", params={"divisionId": north["id"]}).json()["data"]

    assert stats["total"] == 3
    assert stats["withEmail"] == 2
    assert stats["emailPercentage"] == 67
    assert stats["phonePercentage"] == 33
    assert stats["withCustomFields"] == 1
    by_name = {entry["categoryName"]: entry["count"] for entry in stats["byCategory"]}
    assert by_name == {"Uncategorized": 2, "VIP": 1}


def test_stats_for_empty_scope(admin_client: TestClient) -> None:
    stats = admin_client.get("/api/contacts/stats").json()["data"]
    assert stats["total"] == 0
    assert stats["emailPercentage"] == 0
    assert stats["byCategory"] == []


def test_search_treats_wildcards_literally(admin_client: TestClient, make_division) -> None:
    north = make_division("North")
    _contact(admin_client, north["id"], firstName="Ada", company="a_b")
    _contact(admin_client, north["id"], firstName="Grace", company="axb 100")

    def total(term: str) -> int:
        return admin_client.get("/api/contacts", params={"search": term}).json()["meta"]["total"]

    assert total("%") == 0
    assert total("a_b") == 1
    assert total("_") == 1
    assert total("100%") == 0


def test_member_cannot_read_stats_of_other_divisions(make_division, make_user) -> None:
    north = make_division("North")
    south = make_division("South")
    member = make_user("user", [north["id"]])

    assert member.get("/api/contacts/stats", params={"divisionId": north["id"]}).status_code == 200
    response = member.get("/api/contacts/stats", params={"divisionId": south["id"]})
    assert response.status_code == 403
