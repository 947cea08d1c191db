"""Generic async repository with soft-delete filtering and division scoping."""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tally.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)

# None = every division; a collection (possibly empty) = only those divisions
DivisionFilter = Collection[str] | None


class BaseRepository(Generic[ModelT]):
    """Generic CRUD repository.

    Soft-deletes: rows with `is_active = False` are excluded from all standard
    reads. Division scoping is applied by the caller through `division_ids`.
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        self._session = session

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _base_query(self, *, include_inactive: bool = False):
        """Return a SELECT excluding soft-deleted rows."""
        q = select(self.model)
        if not include_inactive and hasattr(self.model, "is_active"):
            q = q.where(self.model.is_active.is_(True))
        return q

    def _scoped(self, q, division_ids: DivisionFilter, *, include_global: bool = False):
        """Restrict a query to `division_ids` (optionally keeping division-less rows)."""
        if division_ids is None:
            return q
        cond = self.model.division_id.in_(list(division_ids))
        if include_global:
            cond = cond | self.model.division_id.is_(None)
        return q.where(cond)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, entity_id: str, *, include_inactive: bool = False) -> ModelT | None:
        result = await self._session.execute(
            self._base_query(include_inactive=include_inactive).where(self.model.id == entity_id)
        )
        return result.scalars().first()

    async def list(
        self,
        *,
        offset: int = 0,
        limit: int | None = None,
        order_by: str = "created_at",
        order: str = "desc",
        filters: dict[str, Any] | None = None,
        division_ids: DivisionFilter = None,
    ) -> tuple[list[ModelT], int]:
        """Return (items, total_count) with pagination and optional column filters."""
        q = self._scoped(self._base_query(), division_ids)

        # Apply simple equality filters
        if filters:
            for col_name, value in filters.items():
                if value is not None and hasattr(self.model, col_name):
                    q = q.where(getattr(self.model, col_name) == value)

        # Count
        count_q = select(func.count()).select_from(q.subquery())
        total = (await self._session.execute(count_q)).scalar_one()

        # Order + paginate
        col = getattr(self.model, order_by, None)
        if col is not None:
            q = q.order_by(col.desc() if order == "desc" else col.asc())
        q = q.offset(offset)
        if limit is not None:
            q = q.limit(limit)

        items = (await self._session.execute(q)).scalars().all()
        return list(items), total

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def create(self, **kwargs: Any) -> ModelT:
        instance = self.model(**kwargs)
        self._session.add(instance)
        await self._session.flush()  # populate id / defaults
        await self._session.refresh(instance)
        return instance

    async def update(self, instance: ModelT, **kwargs: Any) -> ModelT:
        kwargs.pop("id", None)
        for key, value in kwargs.items():
            setattr(instance, key, value)
        await self._session.flush()
        await self._session.refresh(instance)
        return instance

    async def deactivate(self, entity_ids: Collection[str], *, division_ids: DivisionFilter = None) -> int:
        """Soft-delete: flip is_active on still-active rows; return how many changed."""
        if not entity_ids:
            return 0
        stmt = (
            update(self.model)
            .where(self.model.id.in_(list(entity_ids)))
            .where(self.model.is_active.is_(True))
        )
        if division_ids is not None:
            stmt = stmt.where(self.model.division_id.in_(list(division_ids)))
        values: dict[str, Any] = {"is_active": False}
        if hasattr(self.model, "updated_at"):
            values["updated_at"] = datetime.now(timezone.utc)
        result = await self._session.execute(
            stmt.values(**values).execution_options(synchronize_session=False)
        )
        await self._session.flush()
        return result.rowcount or 0
