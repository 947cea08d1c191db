"""Background contact import for an upload that has been moved to processing.

Runs outside the request with its own session. Rows are inserted one savepoint
at a time so a bad row is skipped without losing the rest, and progress is
committed every `import_commit_batch_size` rows. The batch as a whole is not
atomic: a crash leaves the rows committed so far in place.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.config import settings
from tally.db.base import async_session_factory
from tally.domain.contact import Contact
from tally.domain.upload import UPLOAD_PROCESSING, Upload
from tally.repositories.upload import UploadRepository
from tally.services.audit import AuditService
from tally.services.field_mapping import FIELDS_BY_KEY, custom_field_name, is_skipped
from tally.services.spreadsheet import SpreadsheetError, Table, read_table
from tally.services.uploads import upload_path

logger = logging.getLogger(__name__)


def build_contact_values(
    row: dict[str, str | None], mapping: dict[str, str]
) -> dict[str, Any]:
    """Map one spreadsheet row onto Contact columns plus the custom_fields bag."""
    values: dict[str, Any] = {}
    custom: dict[str, str] = {}
    for header, target in mapping.items():
        if is_skipped(target):
            continue
        value = row.get(header)
        if value is None:
            continue
        name = custom_field_name(target)
        if name:
            custom[name] = value
        elif target in FIELDS_BY_KEY:
            values[FIELDS_BY_KEY[target].column] = value
    values["custom_fields"] = custom or None
    return values


class ContactImporter:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._uploads = UploadRepository(session)
        self._audit = AuditService(session)

    async def run(self, upload_id: str, actor_id: str) -> None:
        upload = await self._uploads.get_by_id(upload_id)
        if upload is None or upload.status != UPLOAD_PROCESSING:
            logger.warning("Import of upload %s skipped: not in processing state", upload_id)
            return

        try:
            table = await asyncio.to_thread(read_table, upload_path(upload))
        except SpreadsheetError as exc:
            await self.fail(upload_id, f"Processing failed: {exc}")
            return

        total, imported, skipped = await self._import_rows(upload, table)
        await self._uploads.mark_completed(
            upload.id, total=total, imported=imported, skipped=skipped
        )
        await self._audit.record(
            actor_id,
            "contacts_imported",
            entity_type="upload",
            entity_id=upload.id,
            new_values={
                "recordsTotal": total,
                "recordsImported": imported,
                "recordsSkipped": skipped,
            },
            division_id=upload.division_id,
        )
        await self._session.commit()
        logger.info(
            "Upload %s imported: %d of %d rows (%d skipped)", upload.id, imported, total, skipped
        )

    async def _import_rows(self, upload: Upload, table: Table) -> tuple[int, int, int]:
        mapping = upload.field_mapping or {}
        batch_size = max(settings.import_commit_batch_size, 1)
        total = len(table.rows)
        imported = skipped = 0

        await self._uploads.record_progress(
            upload.id, records_total=total, records_imported=0, records_skipped=0
        )

        for index, row in enumerate(table.rows, start=1):
            values = build_contact_values(row, mapping)
            if all(v is None for v in row.values()) or not values.get("email"):
                skipped += 1
            else:
                try:
                    async with self._session.begin_nested():
                        self._session.add(
                            Contact(
                                **values,
                                division_id=upload.division_id,
                                upload_id=upload.id,
                                is_active=True,
                            )
                        )
                except SQLAlchemyError:
                    logger.warning(
                        "Row %d of upload %s could not be imported", index, upload.id, exc_info=True
                    )
                    skipped += 1
                else:
                    imported += 1

            if index % batch_size == 0:
                await self._uploads.record_progress(
                    upload.id, records_imported=imported, records_skipped=skipped
                )
                await self._session.commit()

        return total, imported, skipped

    async def fail(self, upload_id: str, message: str) -> None:
        logger.error("Upload %s failed: %s", upload_id, message)
        await self._uploads.mark_failed(upload_id, message)
        await self._session.commit()


async def run_import(upload_id: str, actor_id: str) -> None:
    """Background-task entry point scheduled after the submit transaction commits."""
    if settings.import_start_delay_seconds > 0:
        await asyncio.sleep(settings.import_start_delay_seconds)

    async with async_session_factory() as session:
        importer = ContactImporter(session)
        try:
            await importer.run(upload_id, actor_id)
        except Exception as exc:
            logger.exception("Import of upload %s aborted", upload_id)
            await session.rollback()
            await importer.fail(upload_id, f"Processing failed: {exc}")
