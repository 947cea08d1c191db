from __future__ import annotations

from fastapi.testclient import TestClient


def _field(client: TestClient, **body):
    payload = {"name": "shoeSize", "label": "Shoe size", "fieldType": "text", **body}
    return client.post("/api/custom-fields", json=payload)


def test_categories_include_global_ones(admin_client: TestClient, make_division, make_user) -> None:
    north = make_division("North")
    south = make_division("South")
    admin_client.post("/api/contact-categories", json={"name": "VIP", "color": "#FF0000"})
    admin_client.post("/api/contact-categories", json={"name": "Northern", "divisionId": north["id"]})
    admin_client.post("/api/contact-categories", json={"name": "Southern", "divisionId": south["id"]})
    member = make_user("user", [north["id"]])

    names = [c["name"] for c in member.get("/api/contact-categories").json()["data"]]

    assert names == ["Northern", "VIP"]


def test_category_update_and_deactivate(admin_client: TestClient) -> None:
    created = admin_client.post("/api/contact-categories", json={"name": "Leads"}).json()["data"]

    renamed = admin_client.patch(
        f"/api/contact-categories/{created['id']}", json={"name": "Hot leads", "isActive": False}
    )
    assert renamed.status_code == 200, renamed.text
    assert renamed.json()["data"]["isActive"] is False
    assert admin_client.get("/api/contact-categories").json()["data"] == []
    assert admin_client.patch("/api/contact-categories/nope", json={}).status_code == 404


def test_global_category_needs_all_division_role(make_division, make_user) -> None:
    north = make_division("North")
    uploader = make_user("uploader", [north["id"]])
    assert uploader.post("/api/contact-categories", json={"name": "Global"}).status_code == 403
    scoped = uploader.post(
        "/api/contact-categories", json={"name": "Mine", "divisionId": north["id"]}
    )
    assert scoped.status_code == 201


def test_custom_field_lifecycle(admin_client: TestClient, make_division) -> None:
    north = make_division("North")
    created = _field(admin_client, divisionId=north["id"])
    assert created.status_code == 201, created.text
    field = created.json()["data"]
    assert field["isActive"] is True

    duplicate = _field(admin_client, name="SHOESIZE", divisionId=north["id"])
    assert duplicate.status_code == 409

    updated = admin_client.patch(f"/api/custom-fields/{field['id']}", json={"label": "Shoe (EU)"})
    assert updated.json()["data"]["label"] == "Shoe (EU)"

    no_options = admin_client.patch(f"/api/custom-fields/{field['id']}", json={"fieldType": "select"})
    assert no_options.status_code == 400

    assert admin_client.delete(f"/api/custom-fields/{field['id']}").status_code == 204
    listed = admin_client.get("/api/custom-fields", params={"divisionId": north["id"]}).json()
    assert listed["data"] == []
    assert _field(admin_client, divisionId=north["id"]).status_code == 201


def test_custom_field_shape_rules(admin_client: TestClient, make_division) -> None:
    north = make_division("North")
    assert _field(admin_client, fieldType="select", divisionId=north["id"]).status_code == 400
    assert _field(admin_client).status_code == 400
    assert _field(admin_client, isGlobal=True, divisionId=north["id"]).status_code == 400
    assert _field(admin_client, name="2bad", isGlobal=True).status_code == 400
    assert _field(admin_client, isGlobal=True).status_code == 201


def test_global_fields_are_visible_everywhere(admin_client: TestClient, make_division, make_user) -> None:
    north = make_division("North")
    south = make_division("South")
    _field(admin_client, name="birthday", fieldType="date", isGlobal=True)
    _field(admin_client, name="southOnly", divisionId=south["id"])
    uploader = make_user("uploader", [north["id"]])

    names = [f["name"] for f in uploader.get("/api/custom-fields").json()["data"]]

    assert names == ["birthday"]
    assert make_user("user", [north["id"]]).get("/api/custom-fields").status_code == 403
