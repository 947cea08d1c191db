"""SQLAlchemy ORM model for the audit log."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, ForeignKey, JSON, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from tally.db.base import Base
from tally.domain.mixins import DivisionMixin, _now, new_id


class AuditLog(Base, DivisionMixin):
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # Who
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), index=True, nullable=False
    )
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # What, e.g. "contact_created" on ("contact", <id>)
    action: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    entity_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(36), index=True, nullable=True)

    # Change data
    old_values: Mapped[Optional[Any]] = mapped_column(JSON(none_as_null=True), nullable=True)
    new_values: Mapped[Optional[Any]] = mapped_column(JSON(none_as_null=True), nullable=True)

    # When (no updated_at — audit rows are immutable)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_now,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
