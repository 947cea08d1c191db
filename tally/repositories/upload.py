"""Upload repository, including the pending -> processing compare-and-set."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import and_, delete, or_, update

from tally.domain.contact import Contact
from tally.domain.upload import (
    UPLOAD_COMPLETED,
    UPLOAD_FAILED,
    UPLOAD_PENDING,
    UPLOAD_PROCESSING,
    Upload,
)
from tally.repositories.base import BaseRepository, DivisionFilter


class UploadRepository(BaseRepository[Upload]):
    model = Upload

    async def recent(
        self, division_ids: DivisionFilter, *, owner_id: str | None = None, limit: int = 10
    ) -> list[Upload]:
        """Newest first; `owner_id` also admits that user's not-yet-assigned uploads."""
        q = self._base_query()
        if division_ids is not None:
            cond = Upload.division_id.in_(list(division_ids))
            if owner_id:
                cond = or_(cond, and_(Upload.division_id.is_(None), Upload.uploaded_by == owner_id))
            q = q.where(cond)
        q = q.order_by(Upload.created_at.desc()).limit(limit)
        return list((await self._session.execute(q)).scalars().all())

    async def claim_for_processing(
        self, upload_id: str, field_mapping: dict[str, str], division_id: str
    ) -> bool:
        """Move pending -> processing only if the stored status is still pending."""
        result = await self._session.execute(
            update(Upload)
            .where(Upload.id == upload_id, Upload.status == UPLOAD_PENDING)
            .values(
                status=UPLOAD_PROCESSING,
                field_mapping=field_mapping,
                division_id=division_id,
                error_message=None,
            )
            .execution_options(synchronize_session=False)
        )
        await self._session.flush()
        return (result.rowcount or 0) == 1

    async def record_progress(self, upload_id: str, **counters: Any) -> None:
        await self._session.execute(
            update(Upload).where(Upload.id == upload_id).values(**counters)
        )

    async def mark_completed(self, upload_id: str, *, total: int, imported: int, skipped: int) -> None:
        await self._session.execute(
            update(Upload)
            .where(Upload.id == upload_id, Upload.status == UPLOAD_PROCESSING)
            .values(
                status=UPLOAD_COMPLETED,
                records_total=total,
                records_imported=imported,
                records_skipped=skipped,
                completed_at=datetime.now(timezone.utc),
            )
        )

    async def mark_failed(self, upload_id: str, message: str) -> None:
        await self._session.execute(
            update(Upload)
            .where(Upload.id == upload_id, Upload.status == UPLOAD_PROCESSING)
            .values(status=UPLOAD_FAILED, error_message=message)
        )

    async def hard_delete(self, upload_id: str) -> None:
        """Remove the upload row; contacts it produced keep existing unlinked."""
        await self._session.execute(
            update(Contact).where(Contact.upload_id == upload_id).values(upload_id=None)
        )
        await self._session.execute(delete(Upload).where(Upload.id == upload_id))
        await self._session.flush()
