"""Contact statistics and the company-wide dashboard."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.config import settings
from tally.repositories.reports import ReportRepository
from tally.services.access import AccessScope

UNCATEGORIZED = "Uncategorized"


def percentage(part: int, whole: int) -> int:
    """Whole-number share, rounded half-up; 0 when there is nothing to divide."""
    if not whole:
        return 0
    return int(part * 100 / whole + 0.5)


class ReportService:
    def __init__(self, session: AsyncSession):
        self._repo = ReportRepository(session)

    async def contact_stats(self, scope: AccessScope, division_id: str | None) -> dict:
        division_ids = scope.resolve_division_filter(division_id)
        counts = await self._repo.contact_counts(division_ids)
        total = counts["total"]
        breakdown = await self._repo.category_breakdown(division_ids)
        for entry in breakdown:
            if entry["category_name"] is None:
                entry["category_name"] = UNCATEGORIZED
        return {
            **counts,
            "email_percentage": percentage(counts["with_email"], total),
            "phone_percentage": percentage(counts["with_phone"], total),
            "address_percentage": percentage(counts["with_address"], total),
            "company_percentage": percentage(counts["with_company"], total),
            "by_category": breakdown,
        }

    async def company_stats(self) -> dict:
        since = datetime.now(timezone.utc) - timedelta(days=settings.recent_upload_window_days)
        totals = await self._repo.company_totals()
        by_division = await self._repo.contact_counts_by_division()
        users = await self._repo.active_users_by_division()
        uploads = await self._repo.completed_uploads_by_division(since)

        empty = {
            "contact_count": 0,
            "email_count": 0,
            "phone_count": 0,
            "address_count": 0,
            "company_count": 0,
        }
        division_stats = []
        for division in await self._repo.active_divisions():
            counts = by_division.get(division.id, empty)
            division_stats.append(
                {
                    "division_id": division.id,
                    "division_name": division.name,
                    "description": division.description,
                    **counts,
                    "active_users": users.get(division.id, 0),
                    "recent_uploads": uploads.get(division.id, 0),
                    "share_percentage": percentage(
                        counts["contact_count"], totals["total_contacts"]
                    ),
                }
            )
        return {**totals, "division_stats": division_stats}
