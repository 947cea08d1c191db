"""Contact category and custom field definition repositories."""

from __future__ import annotations

from sqlalchemy import func, or_, select

from tally.domain.category import ContactCategory
from tally.domain.custom_field import CustomFieldDefinition
from tally.repositories.base import BaseRepository, DivisionFilter


class CategoryRepository(BaseRepository[ContactCategory]):
    model = ContactCategory

    async def list_visible(self, division_ids: DivisionFilter) -> list[ContactCategory]:
        """Active categories of `division_ids` plus global (division-less) ones."""
        q = self._scoped(self._base_query(), division_ids, include_global=True)
        q = q.order_by(ContactCategory.name)
        return list((await self._session.execute(q)).scalars().all())


class CustomFieldRepository(BaseRepository[CustomFieldDefinition]):
    model = CustomFieldDefinition

    async def list_visible(self, division_ids: DivisionFilter) -> list[CustomFieldDefinition]:
        """Active definitions belonging to `division_ids` plus every global one."""
        q = self._base_query()
        if division_ids is not None:
            q = q.where(
                or_(
                    CustomFieldDefinition.division_id.in_(list(division_ids)),
                    CustomFieldDefinition.is_global.is_(True),
                )
            )
        q = q.order_by(CustomFieldDefinition.display_order, CustomFieldDefinition.name)
        return list((await self._session.execute(q)).scalars().all())

    async def name_taken(self, name: str, division_id: str | None) -> bool:
        """Whether an active field with this name already applies to the division."""
        cond = CustomFieldDefinition.is_global.is_(True)
        if division_id:
            cond = or_(cond, CustomFieldDefinition.division_id == division_id)
        result = await self._session.execute(
            select(func.count(CustomFieldDefinition.id)).where(
                CustomFieldDefinition.is_active.is_(True),
                func.lower(CustomFieldDefinition.name) == name.lower(),
                cond,
            )
        )
        return result.scalar_one() > 0
