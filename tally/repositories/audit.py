"""Audit log repository — append and read only."""

from __future__ import annotations

from sqlalchemy import select

from tally.domain.audit import AuditLog
from tally.repositories.base import BaseRepository


class AuditRepository(BaseRepository[AuditLog]):
    model = AuditLog

    async def append(self, **kwargs) -> AuditLog:
        entry = AuditLog(**kwargs)
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def recent(
        self,
        *,
        division_id: str | None = None,
        entity_type: str | None = None,
        action: str | None = None,
        limit: int = 100,
    ) -> list[AuditLog]:
        q = select(AuditLog)
        if division_id:
            q = q.where(AuditLog.division_id == division_id)
        if entity_type:
            q = q.where(AuditLog.entity_type == entity_type)
        if action:
            q = q.where(AuditLog.action == action)
        q = q.order_by(AuditLog.created_at.desc()).limit(limit)
        return list((await self._session.execute(q)).scalars().all())
