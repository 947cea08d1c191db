"""Audit trail: append an entry in the same transaction as the change it describes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from tally.domain.audit import AuditLog
from tally.repositories.audit import AuditRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestMeta:
    """Client details captured by the router for the audit trail."""

    ip_address: str | None = None
    user_agent: str | None = None


def snapshot(schema: type[BaseModel], obj: Any) -> dict[str, Any]:
    """JSON-ready API representation of an ORM object."""
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)


class AuditService:
    def __init__(self, session: AsyncSession):
        self._repo = AuditRepository(session)

    async def record(
        self,
        actor_id: str,
        action: str,
        *,
        entity_type: str | None = None,
        entity_id: str | None = None,
        old_values: Any = None,
        new_values: Any = None,
        division_id: str | None = None,
        meta: RequestMeta | None = None,
    ) -> AuditLog:
        meta = meta or RequestMeta()
        entry = await self._repo.append(
            user_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_values=old_values,
            new_values=new_values,
            division_id=division_id,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
        )
        logger.info("audit %s %s/%s by %s", action, entity_type, entity_id, actor_id)
        return entry

    async def list_entries(
        self,
        *,
        division_id: str | None = None,
        entity_type: str | None = None,
        action: str | None = None,
        limit: int = 100,
    ) -> list[AuditLog]:
        return await self._repo.recent(
            division_id=division_id, entity_type=entity_type, action=action, limit=limit
        )
