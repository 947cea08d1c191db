"""Division management and the active-division guard used by every scoped write."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from tally.domain.division import Division
from tally.repositories.division import DivisionRepository
from tally.schemas.division import DivisionCreate, DivisionOut, DivisionUpdate
from tally.services.access import AccessScope
from tally.services.audit import AuditService, RequestMeta, snapshot


async def require_active_division(session: AsyncSession, division_id: str) -> Division:
    """Return the division or raise: unknown -> 404, inactive -> 400."""
    division = await DivisionRepository(session).get_by_id(division_id, include_inactive=True)
    if division is None:
        raise NotFoundError("Division", division_id)
    if not division.is_active:
        raise ValidationError("Division is not active")
    return division


class DivisionService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._repo = DivisionRepository(session)
        self._audit = AuditService(session)

    async def list_divisions(self, scope: AccessScope) -> list[Division]:
        if scope.role == "admin":
            return await self._repo.list_all()
        if scope.sees_all_divisions:
            return await self._repo.list_active()
        return await self._repo.list_active(scope.division_ids)

    async def get_division(self, scope: AccessScope, division_id: str) -> Division:
        division = await self._repo.get_by_id(division_id, include_inactive=True)
        if division is None:
            raise NotFoundError("Division", division_id)
        if not scope.can_access_division(division_id):
            raise ForbiddenError("You do not have access to this division")
        return division

    async def create_division(
        self, scope: AccessScope, data: DivisionCreate, meta: RequestMeta
    ) -> Division:
        division = await self._repo.create(**data.model_dump())
        await self._audit.record(
            scope.user_id,
            "division_created",
            entity_type="division",
            entity_id=division.id,
            new_values=snapshot(DivisionOut, division),
            division_id=division.id,
            meta=meta,
        )
        return division

    async def update_division(
        self, scope: AccessScope, division_id: str, data: DivisionUpdate, meta: RequestMeta
    ) -> Division:
        division = await self.get_division(scope, division_id)
        before = snapshot(DivisionOut, division)
        changes = data.model_dump(exclude_unset=True)
        for required in ("name", "is_active"):
            if changes.get(required) is None:
                changes.pop(required, None)
        division = await self._repo.update(division, **changes)
        await self._audit.record(
            scope.user_id,
            "division_updated",
            entity_type="division",
            entity_id=division.id,
            old_values=before,
            new_values=snapshot(DivisionOut, division),
            division_id=division.id,
            meta=meta,
        )
        return division
