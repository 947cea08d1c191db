"""Contact router: scoped listing/search, CRUD, soft and bulk delete, statistics."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.pagination import PaginationParams
from tally.core.response import DataResponse, ListResponse, paginated
from tally.db.base import get_db
from tally.routers.deps import get_request_meta, get_scope, require_writer
from tally.schemas.contact import (
    BulkDeleteRequest,
    BulkDeleteResult,
    ContactCreate,
    ContactOut,
    ContactStats,
    ContactUpdate,
)
from tally.services.access import AccessScope
from tally.services.audit import RequestMeta
from tally.services.contacts import ContactService
from tally.services.reports import ReportService

router = APIRouter(prefix="/contacts", tags=["Contacts"])


@router.get("", response_model=ListResponse[ContactOut])
async def list_contacts(
    division_id: Optional[str] = Query(default=None, alias="divisionId"),
    search: Optional[str] = Query(default=None, max_length=255),
    pagination: PaginationParams = Depends(),
    scope: AccessScope = Depends(get_scope),
    session: AsyncSession = Depends(get_db),
):
    """Active contacts; ``search`` matches name, email, phone or company."""
    items, total = await ContactService(session).list_contacts(
        scope, division_id, search=search, limit=pagination.limit, offset=pagination.offset
    )
    return paginated(
        [ContactOut.model_validate(c) for c in items],
        total, pagination.limit, pagination.offset,
    )


@router.get("/stats", response_model=DataResponse[ContactStats])
async def contact_stats(
    division_id: Optional[str] = Query(default=None, alias="divisionId"),
    scope: AccessScope = Depends(get_scope),
    session: AsyncSession = Depends(get_db),
):
    stats = await ReportService(session).contact_stats(scope, division_id)
    return {"data": ContactStats.model_validate(stats)}


@router.post("", response_model=DataResponse[ContactOut], status_code=status.HTTP_201_CREATED)
async def create_contact(
    body: ContactCreate,
    scope: AccessScope = Depends(require_writer),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    contact = await ContactService(session).create_contact(scope, body, meta)
    return {"data": ContactOut.model_validate(contact)}


@router.post("/bulk-delete", response_model=DataResponse[BulkDeleteResult])
async def bulk_delete_contacts(
    body: BulkDeleteRequest,
    scope: AccessScope = Depends(require_writer),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    deleted = await ContactService(session).bulk_delete(scope, body.ids, meta)
    return {"data": BulkDeleteResult(deleted=deleted)}


@router.get("/{contact_id}", response_model=DataResponse[ContactOut])
async def get_contact(
    contact_id: str,
    scope: AccessScope = Depends(get_scope),
    session: AsyncSession = Depends(get_db),
):
    contact = await ContactService(session).get_contact(scope, contact_id)
    return {"data": ContactOut.model_validate(contact)}


@router.patch("/{contact_id}", response_model=DataResponse[ContactOut])
async def update_contact(
    contact_id: str,
    body: ContactUpdate,
    scope: AccessScope = Depends(require_writer),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    contact = await ContactService(session).update_contact(scope, contact_id, body, meta)
    return {"data": ContactOut.model_validate(contact)}


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(
    contact_id: str,
    scope: AccessScope = Depends(require_writer),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    """Soft delete. Repeating it, or naming an unknown id, still returns 204."""
    await ContactService(session).delete_contact(scope, contact_id, meta)
