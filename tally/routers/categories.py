"""Contact category router."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.response import DataResponse
from tally.db.base import get_db
from tally.routers.deps import get_request_meta, get_scope, require_writer
from tally.schemas.catalog import CategoryCreate, CategoryOut, CategoryUpdate
from tally.services.access import AccessScope
from tally.services.audit import RequestMeta
from tally.services.categories import CategoryService

router = APIRouter(prefix="/contact-categories", tags=["Contact categories"])


@router.get("", response_model=DataResponse[list[CategoryOut]])
async def list_categories(
    division_id: Optional[str] = Query(default=None, alias="divisionId"),
    scope: AccessScope = Depends(get_scope),
    session: AsyncSession = Depends(get_db),
):
    """Categories of the requested (or every permitted) division, plus global ones."""
    categories = await CategoryService(session).list_categories(scope, division_id)
    return {"data": [CategoryOut.model_validate(c) for c in categories]}


@router.post("", response_model=DataResponse[CategoryOut], status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreate,
    scope: AccessScope = Depends(require_writer),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    category = await CategoryService(session).create_category(scope, body, meta)
    return {"data": CategoryOut.model_validate(category)}


@router.patch("/{category_id}", response_model=DataResponse[CategoryOut])
async def update_category(
    category_id: str,
    body: CategoryUpdate,
    scope: AccessScope = Depends(require_writer),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    category = await CategoryService(session).update_category(scope, category_id, body, meta)
    return {"data": CategoryOut.model_validate(category)}
