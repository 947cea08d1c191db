"""Contact categories: division-specific or global (division_id NULL)."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from tally.core.exceptions import NotFoundError
from tally.domain.category import ContactCategory
from tally.repositories.catalog import CategoryRepository
from tally.schemas.catalog import CategoryCreate, CategoryOut, CategoryUpdate
from tally.services.access import AccessScope
from tally.services.audit import AuditService, RequestMeta, snapshot
from tally.services.divisions import require_active_division


class CategoryService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._repo = CategoryRepository(session)
        self._audit = AuditService(session)

    async def list_categories(
        self, scope: AccessScope, division_id: str | None
    ) -> list[ContactCategory]:
        return await self._repo.list_visible(scope.resolve_division_filter(division_id))

    async def create_category(
        self, scope: AccessScope, data: CategoryCreate, meta: RequestMeta
    ) -> ContactCategory:
        scope.ensure_division_access(data.division_id)
        if data.division_id:
            await require_active_division(self._session, data.division_id)
        category = await self._repo.create(**data.model_dump())
        await self._audit.record(
            scope.user_id,
            "category_created",
            entity_type="contact_category",
            entity_id=category.id,
            new_values=snapshot(CategoryOut, category),
            division_id=category.division_id,
            meta=meta,
        )
        return category

    async def update_category(
        self, scope: AccessScope, category_id: str, data: CategoryUpdate, meta: RequestMeta
    ) -> ContactCategory:
        category = await self._repo.get_by_id(category_id, include_inactive=True)
        if category is None:
            raise NotFoundError("Category", category_id)
        scope.ensure_division_access(category.division_id)

        changes = data.model_dump(exclude_unset=True)
        for required in ("name", "is_active"):
            if changes.get(required) is None:
                changes.pop(required, None)
        before = snapshot(CategoryOut, category)
        category = await self._repo.update(category, **changes)
        await self._audit.record(
            scope.user_id,
            "category_updated",
            entity_type="contact_category",
            entity_id=category.id,
            old_values=before,
            new_values=snapshot(CategoryOut, category),
            division_id=category.division_id,
            meta=meta,
        )
        return category
