"""Division and branding repositories."""

from __future__ import annotations

from collections.abc import Collection

from sqlalchemy import select

from tally.domain.branding import BrandingSettings
from tally.domain.division import Division
from tally.repositories.base import BaseRepository


class DivisionRepository(BaseRepository[Division]):
    model = Division

    async def list_active(self, division_ids: Collection[str] | None = None) -> list[Division]:
        q = self._base_query().order_by(Division.name)
        if division_ids is not None:
            q = q.where(Division.id.in_(list(division_ids)))
        return list((await self._session.execute(q)).scalars().all())

    async def list_all(self) -> list[Division]:
        """Every division, inactive ones included (admin management view)."""
        q = self._base_query(include_inactive=True).order_by(Division.name)
        return list((await self._session.execute(q)).scalars().all())


class BrandingRepository(BaseRepository[BrandingSettings]):
    model = BrandingSettings

    async def get_current(self) -> BrandingSettings | None:
        result = await self._session.execute(select(BrandingSettings).limit(1))
        return result.scalars().first()
