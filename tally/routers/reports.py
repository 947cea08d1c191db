"""Company-wide dashboard (admin and exco)."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.response import DataResponse
from tally.db.base import get_db
from tally.routers.deps import require_reporting
from tally.schemas.contact import CompanyStats
from tally.services.access import AccessScope
from tally.services.reports import ReportService

router = APIRouter(tags=["Reports"])


@router.get("/company-stats", response_model=DataResponse[CompanyStats])
async def company_stats(
    _: AccessScope = Depends(require_reporting),
    session: AsyncSession = Depends(get_db),
):
    stats = await ReportService(session).company_stats()
    return {"data": CompanyStats.model_validate(stats)}
