"""Branding router. Reading is public so the login page can be themed."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.response import DataResponse
from tally.db.base import get_db
from tally.routers.deps import get_optional_scope, get_request_meta, require_admin
from tally.schemas.division import BrandingIn, BrandingOut, EffectiveBrandingOut
from tally.services.access import AccessScope
from tally.services.audit import RequestMeta
from tally.services.branding import BrandingService

router = APIRouter(prefix="/branding", tags=["Branding"])


@router.get("", response_model=DataResponse[BrandingOut | None])
async def get_branding(session: AsyncSession = Depends(get_db)):
    current = await BrandingService(session).get_settings()
    return {"data": BrandingOut.model_validate(current) if current else None}


@router.put("", response_model=DataResponse[BrandingOut])
async def save_branding(
    body: BrandingIn,
    scope: AccessScope = Depends(require_admin),
    meta: RequestMeta = Depends(get_request_meta),
    session: AsyncSession = Depends(get_db),
):
    current = await BrandingService(session).save_settings(scope, body, meta)
    return {"data": BrandingOut.model_validate(current)}


@router.get("/effective", response_model=DataResponse[EffectiveBrandingOut])
async def effective_branding(
    scope: AccessScope | None = Depends(get_optional_scope),
    session: AsyncSession = Depends(get_db),
):
    """Resolved colors/logo/name for the caller's selected division (or global)."""
    resolved = await BrandingService(session).effective(scope)
    return {"data": EffectiveBrandingOut.model_validate(resolved.as_dict())}
