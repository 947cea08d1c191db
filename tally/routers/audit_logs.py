"""Read-only audit trail (admin only)."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.response import DataResponse
from tally.db.base import get_db
from tally.routers.deps import require_admin
from tally.schemas.audit import AuditLogOut
from tally.services.access import AccessScope
from tally.services.audit import AuditService

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=DataResponse[list[AuditLogOut]])
async def list_audit_logs(
    division_id: Optional[str] = Query(default=None, alias="divisionId"),
    entity_type: Optional[str] = Query(default=None, alias="entityType"),
    action: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    _: AccessScope = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    """Newest entries first."""
    entries = await AuditService(session).list_entries(
        division_id=division_id, entity_type=entity_type, action=action, limit=limit
    )
    return {"data": [AuditLogOut.model_validate(e) for e in entries]}
