"""Custom field definition router (admins and uploaders)."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.response import DataResponse
from tally.db.base import get_db
from tally.routers.deps import get_request_meta, require_writer
from tally.schemas.catalog import CustomFieldCreate, CustomFieldOut, CustomFieldUpdate
from tally.services.access import AccessScope
from tally.services.audit import RequestMeta
from tally.services.custom_fields import CustomFieldService

router = APIRouter(prefix="/custom-fields", tags=["Custom fields"])


@router.get("", response_model=DataResponse[list[CustomFieldOut]])
async def list_custom_fields(
    division_id: Optional[str] = Query(default=None, alias="divisionId"),
    scope: AccessScope = Depends(require_writer),
    session: AsyncSession = Depends(get_db),
):
    fields = await CustomFieldService(session).list_fields(scope, division_id)
    return {"data": [CustomFieldOut.model_validate(f) for f in fields]}


@router.post("", response_model=DataResponse[CustomFieldOut], status_code=status.HTTP_201_CREATED)
async def create_custom_field(
    body: CustomFieldCreate,
    scope: AccessScope = Depends(require_writer),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    definition = await CustomFieldService(session).create_field(scope, body, meta)
    return {"data": CustomFieldOut.model_validate(definition)}


@router.patch("/{field_id}", response_model=DataResponse[CustomFieldOut])
async def update_custom_field(
    field_id: str,
    body: CustomFieldUpdate,
    scope: AccessScope = Depends(require_writer),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    definition = await CustomFieldService(session).update_field(scope, field_id, body, meta)
    return {"data": CustomFieldOut.model_validate(definition)}


@router.delete("/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_custom_field(
    field_id: str,
    scope: AccessScope = Depends(require_writer),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    await CustomFieldService(session).delete_field(scope, field_id, meta)
