"""Division router: everyone reads their own divisions, admins manage all of them."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.response import DataResponse
from tally.db.base import get_db
from tally.routers.deps import get_request_meta, get_scope, require_admin
from tally.schemas.division import DivisionCreate, DivisionOut, DivisionUpdate
from tally.services.access import AccessScope
from tally.services.audit import RequestMeta
from tally.services.divisions import DivisionService

router = APIRouter(prefix="/divisions", tags=["Divisions"])


@router.get("", response_model=DataResponse[list[DivisionOut]])
async def list_divisions(
    scope: AccessScope = Depends(get_scope),
    session: AsyncSession = Depends(get_db),
):
    divisions = await DivisionService(session).list_divisions(scope)
    return {"data": [DivisionOut.model_validate(d) for d in divisions]}


@router.post("", response_model=DataResponse[DivisionOut], status_code=status.HTTP_201_CREATED)
async def create_division(
    body: DivisionCreate,
    scope: AccessScope = Depends(require_admin),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    division = await DivisionService(session).create_division(scope, body, meta)
    return {"data": DivisionOut.model_validate(division)}


@router.get("/{division_id}", response_model=DataResponse[DivisionOut])
async def get_division(
    division_id: str,
    scope: AccessScope = Depends(get_scope),
    session: AsyncSession = Depends(get_db),
):
    division = await DivisionService(session).get_division(scope, division_id)
    return {"data": DivisionOut.model_validate(division)}


@router.patch("/{division_id}", response_model=DataResponse[DivisionOut])
async def update_division(
    division_id: str,
    body: DivisionUpdate,
    scope: AccessScope = Depends(require_admin),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    division = await DivisionService(session).update_division(scope, division_id, body, meta)
    return {"data": DivisionOut.model_validate(division)}
