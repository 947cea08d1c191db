"""Upload router — thin HTTP layer over :mod:`tally.services.uploads`.

File-type and size checks are HTTP concerns and stay here; storage, mapping
validation and the status transition live in the service.
"""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Optional

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    Query,
    UploadFile,
    status,
)
from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.config import settings
from tally.core.exceptions import (
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from tally.core.response import DataResponse
from tally.db.base import get_db
from tally.routers.deps import get_request_meta, get_scope, require_writer
from tally.schemas.catalog import CustomFieldOut
from tally.schemas.upload import UploadOut, UploadPatch, UploadPreview
from tally.services.access import AccessScope
from tally.services.audit import RequestMeta
from tally.services.importer import run_import
from tally.services.uploads import UploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["Uploads"])

_ALLOWED_CONTENT_TYPES: dict[str, str] = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ".xlsx",
    "application/vnd.ms-excel": ".xls",
    "text/csv": ".csv",
}
_ALLOWED_EXTENSIONS = {".xlsx", ".xls", ".csv"}


# ---------------------------------------------------------------------------
# Shared file validation (HTTP concern — stays in the router)
# ---------------------------------------------------------------------------

def _detect_extension(file: UploadFile) -> str:
    """Return the extension the file is stored under.

    The filename's extension is preferred; the declared content type is the
    fallback. Raises 415 when neither is on the allow-list.
    """
    ext = PurePath(file.filename or "").suffix.lower()
    if ext in _ALLOWED_EXTENSIONS:
        return ext

    content_type = (file.content_type or "").split(";")[0].strip().lower()
    by_content_type = _ALLOWED_CONTENT_TYPES.get(content_type)
    if by_content_type:
        return by_content_type

    accepted = ", ".join(sorted(_ALLOWED_EXTENSIONS))
    raise UnsupportedMediaTypeError(
        f"Unsupported file type '{file.content_type}'. Accepted formats: {accepted}"
    )


async def _validate_and_read_file(file: UploadFile) -> tuple[bytes, str]:
    """Validate the uploaded file and return ``(contents, extension)``."""
    ext = _detect_extension(file)

    # One byte past the limit is enough to know it is too big
    contents = await file.read(settings.max_upload_size_bytes + 1)

    if len(contents) == 0:
        raise ValidationError("Uploaded file is empty.")

    if len(contents) > settings.max_upload_size_bytes:
        raise PayloadTooLargeError(
            f"File size exceeds the {settings.max_upload_size_mb}MB limit."
        )

    return contents, ext


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=DataResponse[UploadOut], status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(...),
    division_id: Optional[str] = Form(default=None, alias="divisionId"),
    scope: AccessScope = Depends(require_writer),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    """Store a spreadsheet/CSV and open a pending upload awaiting its field mapping."""
    contents, ext = await _validate_and_read_file(file)
    upload = await UploadService(session).store_upload(
        scope,
        original_name=file.filename or f"upload{ext}",
        content_type=file.content_type,
        extension=ext,
        content=contents,
        division_id=division_id or None,
        meta=meta,
    )
    return {"data": UploadOut.model_validate(upload)}


@router.get("", response_model=DataResponse[list[UploadOut]])
async def list_uploads(
    division_id: Optional[str] = Query(default=None, alias="divisionId"),
    limit: int = Query(default=10, ge=1, le=100),
    scope: AccessScope = Depends(get_scope),
    session: AsyncSession = Depends(get_db),
):
    uploads = await UploadService(session).list_uploads(scope, division_id, limit)
    return {"data": [UploadOut.model_validate(u) for u in uploads]}


@router.get("/{upload_id}", response_model=DataResponse[UploadOut])
async def get_upload(
    upload_id: str,
    scope: AccessScope = Depends(get_scope),
    session: AsyncSession = Depends(get_db),
):
    """Poll this to follow an import; there is no push notification."""
    upload = await UploadService(session).get_upload(scope, upload_id)
    return {"data": UploadOut.model_validate(upload)}


@router.get("/{upload_id}/preview", response_model=DataResponse[UploadPreview])
async def preview_upload(
    upload_id: str,
    scope: AccessScope = Depends(require_writer),
    session: AsyncSession = Depends(get_db),
):
    """Headers, a few sample rows and the suggested mapping for the mapping screen."""
    preview = await UploadService(session).preview(scope, upload_id)
    preview["custom_fields"] = [CustomFieldOut.model_validate(f) for f in preview["custom_fields"]]
    return {"data": UploadPreview.model_validate(preview)}


@router.patch("/{upload_id}", response_model=DataResponse[UploadOut])
async def update_upload(
    upload_id: str,
    body: UploadPatch,
    background_tasks: BackgroundTasks,
    scope: AccessScope = Depends(require_writer),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    """Save a draft mapping, or submit it with ``status: "processing"`` to start the import."""
    upload, start_import = await UploadService(session).apply_patch(scope, upload_id, body, meta)
    if start_import:
        # The import runs in its own session and must see the processing row
        await session.commit()
        background_tasks.add_task(run_import, upload.id, scope.user_id)
    return {"data": UploadOut.model_validate(upload)}


@router.delete("/{upload_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_upload(
    upload_id: str,
    scope: AccessScope = Depends(require_writer),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    await UploadService(session).delete_upload(scope, upload_id, meta)
