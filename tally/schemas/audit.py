"""Audit log schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from tally.schemas.common import CamelModel


class AuditLogOut(CamelModel):
    id: str
    user_id: str
    action: str
    entity_type: str | None = None
    entity_id: str | None = None
    old_values: Any = None
    new_values: Any = None
    ip_address: str | None = None
    user_agent: str | None = None
    division_id: str | None = None
    created_at: datetime
