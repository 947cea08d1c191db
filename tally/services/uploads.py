"""Upload records: storage, preview, field-mapping drafts and the submit transition.

Status only ever moves pending -> processing -> completed | failed. The move
out of pending is a compare-and-set in the database so two concurrent submits
cannot both start an import.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.config import settings
from tally.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from tally.domain.upload import UPLOAD_PENDING, UPLOAD_PROCESSING, Upload
from tally.repositories.upload import UploadRepository
from tally.schemas.upload import UploadOut, UploadPatch
from tally.services.access import AccessScope
from tally.services.audit import AuditService, RequestMeta, snapshot
from tally.services.custom_fields import CustomFieldService
from tally.services.divisions import require_active_division
from tally.services.field_mapping import CANONICAL_FIELDS, auto_map, validate_field_mapping
from tally.services.spreadsheet import SpreadsheetError, read_table

logger = logging.getLogger(__name__)

PREVIEW_ROWS = 5


def upload_path(upload: Upload) -> Path:
    return Path(settings.upload_dir) / upload.filename


def _write_file(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


class UploadService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._repo = UploadRepository(session)
        self._fields = CustomFieldService(session)
        self._audit = AuditService(session)

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    async def store_upload(
        self,
        scope: AccessScope,
        *,
        original_name: str,
        content_type: str | None,
        extension: str,
        content: bytes,
        division_id: str | None,
        meta: RequestMeta,
    ) -> Upload:
        """Persist the raw file under a generated name and open a pending upload."""
        if division_id:
            scope.ensure_division_access(division_id)
            await require_active_division(self._session, division_id)

        stored_name = f"{uuid.uuid4().hex}{extension}"
        try:
            await asyncio.to_thread(_write_file, Path(settings.upload_dir) / stored_name, content)
        except OSError as exc:
            logger.exception("Could not write upload %s to %s", original_name, settings.upload_dir)
            raise StorageError() from exc

        upload = await self._repo.create(
            filename=stored_name,
            original_name=original_name,
            file_size=len(content),
            mime_type=content_type,
            status=UPLOAD_PENDING,
            uploaded_by=scope.user_id,
            division_id=division_id,
        )
        await self._audit.record(
            scope.user_id,
            "file_uploaded",
            entity_type="upload",
            entity_id=upload.id,
            new_values=snapshot(UploadOut, upload),
            division_id=division_id,
            meta=meta,
        )
        logger.info("Stored upload %s (%d bytes) as %s", original_name, len(content), stored_name)
        return upload

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def list_uploads(
        self, scope: AccessScope, division_id: str | None, limit: int = 10
    ) -> list[Upload]:
        division_ids = scope.resolve_division_filter(division_id)
        owner_id = None if division_id else scope.user_id
        return await self._repo.recent(division_ids, owner_id=owner_id, limit=limit)

    async def get_upload(self, scope: AccessScope, upload_id: str) -> Upload:
        upload = await self._repo.get_by_id(upload_id)
        if upload is None:
            raise NotFoundError("Upload", upload_id)
        if upload.division_id is None:
            if not scope.sees_all_divisions and upload.uploaded_by != scope.user_id:
                raise ForbiddenError("You do not have access to this upload")
        elif not scope.can_access_division(upload.division_id):
            raise ForbiddenError("You do not have access to this division")
        return upload

    async def preview(self, scope: AccessScope, upload_id: str) -> dict:
        upload = await self.get_upload(scope, upload_id)
        try:
            table = await asyncio.to_thread(read_table, upload_path(upload), max_rows=PREVIEW_ROWS)
        except SpreadsheetError as exc:
            raise ValidationError(str(exc), message="The file could not be read") from exc

        custom_fields = await self._fields.list_fields(scope, upload.division_id)
        return {
            "upload_id": upload.id,
            "headers": table.headers,
            "sample_rows": table.rows,
            "suggested_mapping": auto_map(table.headers),
            "fields": [
                {"key": f.key, "label": f.label, "required": f.required} for f in CANONICAL_FIELDS
            ],
            "custom_fields": custom_fields,
        }

    # ------------------------------------------------------------------
    # Mapping / submit
    # ------------------------------------------------------------------

    async def apply_patch(
        self, scope: AccessScope, upload_id: str, data: UploadPatch, meta: RequestMeta
    ) -> tuple[Upload, bool]:
        """Save a draft or submit for import; returns (upload, import_should_start)."""
        upload = await self.get_upload(scope, upload_id)
        if upload.status != UPLOAD_PENDING:
            raise ConflictError(f"Upload is already {upload.status}")
        if data.status is None:
            return await self._save_draft(scope, upload, data), False
        if data.status != UPLOAD_PROCESSING:
            raise ConflictError(f"Cannot move an upload from pending to {data.status}")
        return await self._submit(scope, upload, data, meta), True

    async def _save_draft(self, scope: AccessScope, upload: Upload, data: UploadPatch) -> Upload:
        changes: dict = {}
        if data.field_mapping is not None:
            changes["field_mapping"] = data.field_mapping
        if data.division_id is not None:
            scope.ensure_division_access(data.division_id)
            await require_active_division(self._session, data.division_id)
            changes["division_id"] = data.division_id
        if not changes:
            return upload
        return await self._repo.update(upload, **changes)

    async def _submit(
        self, scope: AccessScope, upload: Upload, data: UploadPatch, meta: RequestMeta
    ) -> Upload:
        mapping = data.field_mapping if data.field_mapping is not None else upload.field_mapping
        mapping = mapping or {}
        division_id = data.division_id or upload.division_id

        custom_names = await self._fields.names_for_division(division_id) if division_id else set()
        errors = validate_field_mapping(mapping, division_id, custom_names)
        if errors:
            raise ValidationError(errors, message="Invalid field mapping")

        scope.ensure_division_access(division_id)
        await require_active_division(self._session, division_id)

        if not await self._repo.claim_for_processing(upload.id, mapping, division_id):
            raise ConflictError("Upload is already being processed")
        await self._session.refresh(upload)

        await self._audit.record(
            scope.user_id,
            "import_started",
            entity_type="upload",
            entity_id=upload.id,
            new_values={"fieldMapping": mapping, "divisionId": division_id},
            division_id=division_id,
            meta=meta,
        )
        logger.info("Upload %s queued for import into division %s", upload.id, division_id)
        return upload

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_upload(self, scope: AccessScope, upload_id: str, meta: RequestMeta) -> None:
        """Hard-delete the record and its file; imported contacts stay, unlinked."""
        upload = await self.get_upload(scope, upload_id)
        if upload.status == UPLOAD_PROCESSING:
            raise ConflictError("Cannot delete an upload while it is being processed")

        before = snapshot(UploadOut, upload)
        path = upload_path(upload)
        await self._repo.hard_delete(upload.id)
        await self._audit.record(
            scope.user_id,
            "upload_deleted",
            entity_type="upload",
            entity_id=upload_id,
            old_values=before,
            division_id=before.get("divisionId"),
            meta=meta,
        )
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError:
            logger.warning("Could not remove stored file %s", path, exc_info=True)
