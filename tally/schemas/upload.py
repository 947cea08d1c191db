"""Upload and field-mapping schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from tally.schemas.catalog import CustomFieldOut
from tally.schemas.common import CamelModel


class UploadOut(CamelModel):
    id: str
    filename: str
    original_name: str
    file_size: int | None = None
    mime_type: str | None = None
    status: str
    records_total: int | None = None
    records_imported: int | None = None
    records_skipped: int | None = None
    error_message: str | None = None
    field_mapping: dict[str, str] | None = None
    uploaded_by: str
    division_id: str | None = None
    created_at: datetime
    completed_at: datetime | None = None


class UploadPatch(CamelModel):
    """`PATCH /api/uploads/{id}`.

    Without a status the mapping/division are saved as a draft; with
    status="processing" the mapping is validated and the import starts.
    """

    status: Literal["pending", "processing", "completed", "failed"] | None = None
    field_mapping: dict[str, str] | None = None
    division_id: str | None = None


class CanonicalFieldOut(CamelModel):
    key: str
    label: str
    required: bool


class UploadPreview(CamelModel):
    upload_id: str
    headers: list[str]
    sample_rows: list[dict[str, str | None]]
    suggested_mapping: dict[str, str]
    fields: list[CanonicalFieldOut]
    custom_fields: list[CustomFieldOut]
