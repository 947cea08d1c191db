from __future__ import annotations

import asyncio
import io
import sqlite3

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

from tally.core.config import settings
from tally.db.base import async_session_factory
from tally.repositories.upload import UploadRepository
from tally.services.field_mapping import DIVISION_REQUIRED, DUPLICATE_TARGETS, EMAIL_REQUIRED
from tests.conftest import _DB_PATH

XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _upload(
    client: TestClient,
    content: bytes,
    name: str = "people.csv",
    content_type: str = "text/csv",
    division_id: str | None = None,
):
    data = {"divisionId": division_id} if division_id else {}
    return client.post("/api/uploads", files={"file": (name, content, content_type)}, data=data)


def _stored(client: TestClient, content: bytes, **kw) -> dict:
    response = _upload(client, content, **kw)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _submit(client: TestClient, upload_id: str, mapping: dict | None = None, **extra):
    body = {"status": "processing", **extra}
    if mapping is not None:
        body["fieldMapping"] = mapping
    return client.patch(f"/api/uploads/{upload_id}", json=body)


def _xlsx(*rows: list) -> bytes:
    workbook = Workbook()
    for row in rows:
        workbook.active.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_unsupported_type_is_415(admin_client: TestClient) -> None:
    response = _upload(admin_client, b"hello", name="notes.txt", content_type="text/plain")
    assert response.status_code == 415
    assert response.json()["error"]["message"] == (
        "Unsupported file type 'text/plain'. Accepted formats: .csv, .xls, .xlsx"
    )


def test_extension_wins_over_generic_content_type(admin_client: TestClient) -> None:
    upload = _stored(
        admin_client, b"Email\na@example.com\n", content_type="application/octet-stream"
    )
    assert upload["filename"].endswith(".csv")
    assert upload["originalName"] == "people.csv"


def test_empty_file_is_400(admin_client: TestClient) -> None:
    response = _upload(admin_client, b"")
    assert response.status_code == 400
    assert response.json()["error"]["errors"] == ["Uploaded file is empty."]


def test_oversized_file_is_413(admin_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "max_upload_size_mb", 0)
    response = _upload(admin_client, b"Email\na@example.com\n")
    assert response.status_code == 413
    assert response.json()["error"]["message"] == "File size exceeds the 0MB limit."


def test_stored_upload_is_pending(admin_client: TestClient, make_division) -> None:
    north = make_division("North")
    upload = _stored(admin_client, b"Email\na@example.com\n", division_id=north["id"])

    assert upload["status"] == "pending"
    assert upload["divisionId"] == north["id"]
    assert upload["fileSize"] == len(b"Email\na@example.com\n")
    assert upload["filename"] != "people.csv"

    listed = admin_client.get("/api/uploads").json()["data"]
    assert [u["id"] for u in listed] == [upload["id"]]


def test_preview_suggests_mapping(admin_client: TestClient, make_division, csv_bytes) -> None:
    north = make_division("North")
    upload = _stored(
        admin_client,
        csv_bytes(
            "First Name,Last Name,E-mail,Mobile,Favourite Colour",
            "Ada,Lovelace,ada@example.com,555,green",
            "Grace,Hopper,grace@example.com,556,blue",
        ),
        division_id=north["id"],
    )

    response = admin_client.get(f"/api/uploads/{upload['id']}/preview")

    assert response.status_code == 200, response.text
    preview = response.json()["data"]
    assert preview["headers"] == ["First Name", "Last Name", "E-mail", "Mobile", "Favourite Colour"]
    assert preview["suggestedMapping"] == {
        "First Name": "firstName",
        "Last Name": "lastName",
        "E-mail": "email",
        "Mobile": "phone",
    }
    assert len(preview["sampleRows"]) == 2
    assert preview["sampleRows"][0]["E-mail"] == "ada@example.com"
    email_field = next(f for f in preview["fields"] if f["key"] == "email")
    assert email_field["required"] is True


def test_import_counts_blank_and_emailless_rows_as_skipped(
    admin_client: TestClient, make_division, csv_bytes
) -> None:
    north = make_division("North")
    upload = _stored(
        admin_client,
        csv_bytes(
            "Email,First Name,Company",
            "ada@example.com,Ada,Analytical Engines",
            ",No Email,Nowhere",
            ",,",
            "grace@example.com,Grace,US Navy",
        ),
        division_id=north["id"],
    )

    response = _submit(
        admin_client,
        upload["id"],
        {"Email": "email", "First Name": "firstName", "Company": "company"},
    )
    assert response.status_code == 200, response.text
    assert response.json()["data"]["status"] == "processing"

    finished = admin_client.get(f"/api/uploads/{upload['id']}").json()["data"]
    assert finished["status"] == "completed"
    assert finished["recordsTotal"] == 4
    assert finished["recordsImported"] == 2
    assert finished["recordsSkipped"] == 2
    assert finished["completedAt"] is not None

    contacts = admin_client.get("/api/contacts", params={"divisionId": north["id"]}).json()
    assert contacts["meta"]["total"] == 2
    assert {c["email"] for c in contacts["data"]} == {"ada@example.com", "grace@example.com"}
    assert all(c["uploadId"] == upload["id"] for c in contacts["data"])
    assert all(c["divisionId"] == north["id"] for c in contacts["data"])

    again = _submit(admin_client, upload["id"], {"Email": "email"})
    assert again.status_code == 409
    assert again.json()["error"]["message"] == "Upload is already completed"


def test_invalid_mapping_reports_every_problem(admin_client: TestClient, csv_bytes) -> None:
    upload = _stored(admin_client, csv_bytes("A,B", "x,y"))

    response = _submit(admin_client, upload["id"], {"A": "firstName", "B": "firstName"})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["message"] == "Invalid field mapping"
    assert error["errors"] == [DIVISION_REQUIRED, EMAIL_REQUIRED, DUPLICATE_TARGETS]
    assert admin_client.get(f"/api/uploads/{upload['id']}").json()["data"]["status"] == "pending"


def test_draft_mapping_is_used_on_submit(
    admin_client: TestClient, make_division, csv_bytes
) -> None:
    north = make_division("North")
    upload = _stored(admin_client, csv_bytes("Mail,Name", "a@example.com,Ann"))

    draft = admin_client.patch(
        f"/api/uploads/{upload['id']}",
        json={"fieldMapping": {"Mail": "email", "Name": "firstName"}, "divisionId": north["id"]},
    )
    assert draft.status_code == 200, draft.text
    assert draft.json()["data"]["status"] == "pending"
    assert draft.json()["data"]["fieldMapping"] == {"Mail": "email", "Name": "firstName"}

    assert _submit(admin_client, upload["id"]).status_code == 200
    finished = admin_client.get(f"/api/uploads/{upload['id']}").json()["data"]
    assert finished["status"] == "completed"
    assert finished["recordsImported"] == 1


def test_only_processing_is_a_valid_transition(admin_client: TestClient, csv_bytes) -> None:
    upload = _stored(admin_client, csv_bytes("Email", "a@example.com"))
    response = admin_client.patch(f"/api/uploads/{upload['id']}", json={"status": "completed"})
    assert response.status_code == 409


def test_custom_field_targets(admin_client: TestClient, make_division, csv_bytes) -> None:
    north = make_division("North")
    created = admin_client.post(
        "/api/custom-fields",
        json={
            "name": "shoeSize",
            "label": "Shoe size",
            "fieldType": "text",
            "divisionId": north["id"],
        },
    )
    assert created.status_code == 201, created.text
    upload = _stored(
        admin_client, csv_bytes("Email,Shoe,Hat", "a@example.com,42,L"), division_id=north["id"]
    )

    unknown = _submit(
        admin_client, upload["id"], {"Email": "email", "Shoe": "custom:shoeSize", "Hat": "custom:hat"}
    )
    assert unknown.status_code == 400

    ok = _submit(admin_client, upload["id"], {"Email": "email", "Shoe": "custom:shoeSize"})
    assert ok.status_code == 200, ok.text

    contacts = admin_client.get("/api/contacts").json()["data"]
    assert contacts[0]["customFields"] == {"shoeSize": "42"}


def test_xlsx_import(admin_client: TestClient, make_division) -> None:
    north = make_division("North")
    upload = _stored(
        admin_client,
        _xlsx(["Email", "Phone"], ["ada@example.com", 5551234]),
        name="people.xlsx",
        content_type=XLSX_TYPE,
        division_id=north["id"],
    )

    assert _submit(admin_client, upload["id"], {"Email": "email", "Phone": "phone"}).status_code == 200

    contacts = admin_client.get("/api/contacts").json()["data"]
    assert len(contacts) == 1
    assert contacts[0]["phone"] == "5551234"


def test_unreadable_file_fails_the_upload(admin_client: TestClient, make_division) -> None:
    north = make_division("North")
    upload = _stored(
        admin_client,
        b"\xd0\xcf\x11\xe0legacy",
        name="old.xls",
        content_type="application/vnd.ms-excel",
        division_id=north["id"],
    )

    preview = admin_client.get(f"/api/uploads/{upload['id']}/preview")
    assert preview.status_code == 400

    assert _submit(admin_client, upload["id"], {"Email": "email"}).status_code == 200
    failed = admin_client.get(f"/api/uploads/{upload['id']}").json()["data"]
    assert failed["status"] == "failed"
    assert failed["errorMessage"].startswith("Processing failed:")


def test_delete_upload_keeps_contacts(admin_client: TestClient, make_division, csv_bytes) -> None:
    north = make_division("North")
    upload = _stored(admin_client, csv_bytes("Email", "a@example.com"), division_id=north["id"])
    _submit(admin_client, upload["id"], {"Email": "email"})

    assert admin_client.delete(f"/api/uploads/{upload['id']}").status_code == 204
    assert admin_client.get(f"/api/uploads/{upload['id']}").status_code == 404

    contacts = admin_client.get("/api/contacts").json()["data"]
    assert len(contacts) == 1
    assert contacts[0]["uploadId"] is None


def test_upload_access_follows_division_membership(
    make_division, make_user, csv_bytes
) -> None:
    north = make_division("North")
    south = make_division("South")
    north_uploader = make_user("uploader", [north["id"]])
    south_uploader = make_user("uploader", [south["id"]])
    reader = make_user("user", [north["id"]])

    denied = _upload(north_uploader, csv_bytes("Email", "a@example.com"), division_id=south["id"])
    assert denied.status_code == 403

    upload = _stored(north_uploader, csv_bytes("Email", "a@example.com"), division_id=north["id"])
    assert south_uploader.get(f"/api/uploads/{upload['id']}").status_code == 403
    assert reader.get(f"/api/uploads/{upload['id']}").status_code == 200

    assert _upload(reader, csv_bytes("Email", "a@example.com")).status_code == 403
    assert reader.get(f"/api/uploads/{upload['id']}/preview").status_code == 403

    assert [u["id"] for u in south_uploader.get("/api/uploads").json()["data"]] == []
    assert [u["id"] for u in north_uploader.get("/api/uploads").json()["data"]] == [upload["id"]]


def test_rows_the_database_rejects_are_skipped(
    admin_client: TestClient, make_division, csv_bytes, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "import_commit_batch_size", 1)
    north = make_division("North")
    with sqlite3.connect(_DB_PATH) as conn:
        conn.execute(
            "CREATE TRIGGER reject_blocked_emails BEFORE INSERT ON contacts "
            "WHEN NEW.email LIKE 'blocked%' BEGIN SELECT RAISE(ABORT, 'blocked address'); END"
        )
    upload = _stored(
        admin_client,
        csv_bytes(
            "Email",
            "ada@example.com",
            "blocked1@example.com",
            "grace@example.com",
            "blocked2@example.com",
            "alan@example.com",
        ),
        division_id=north["id"],
    )

    assert _submit(admin_client, upload["id"], {"Email": "email"}).status_code == 200

    finished = admin_client.get(f"/api/uploads/{upload['id']}").json()["data"]
    assert finished["status"] == "completed"
    assert finished["recordsTotal"] == 5
    assert finished["recordsImported"] == 3
    assert finished["recordsSkipped"] == 2
    contacts = admin_client.get("/api/contacts", params={"divisionId": north["id"]}).json()
    assert {c["email"] for c in contacts["data"]} == {
        "ada@example.com",
        "grace@example.com",
        "alan@example.com",
    }


async def _claim_twice(upload_id: str, division_id: str) -> tuple[bool, bool]:
    async with async_session_factory() as session:
        uploads = UploadRepository(session)
        first = await uploads.claim_for_processing(upload_id, {"Email": "email"}, division_id)
        second = await uploads.claim_for_processing(upload_id, {"Email": "email"}, division_id)
        await session.commit()
    return first, second


def test_only_one_claim_wins(admin_client: TestClient, make_division, csv_bytes) -> None:
    north = make_division("North")
    upload = _stored(admin_client, csv_bytes("Email", "a@example.com"), division_id=north["id"])

    assert asyncio.run(_claim_twice(upload["id"], north["id"])) == (True, False)

    stored = admin_client.get(f"/api/uploads/{upload['id']}").json()["data"]
    assert stored["status"] == "processing"
    assert stored["fieldMapping"] == {"Email": "email"}
    assert _submit(admin_client, upload["id"], {"Email": "email"}).status_code == 409
