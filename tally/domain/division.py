"""SQLAlchemy ORM models for divisions and user memberships."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tally.db.base import Base
from tally.domain.mixins import TimestampMixin, _now, new_id


class Division(Base, TimestampMixin):
    __tablename__ = "divisions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    primary_color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)  # "#RRGGBB"
    secondary_color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class UserDivision(Base):
    """Membership of a user in a division; the only source of division access."""

    __tablename__ = "user_divisions"
    __table_args__ = (UniqueConstraint("user_id", "division_id", name="uq_user_division"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    division_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("divisions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    can_manage: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, server_default=func.now(), nullable=False
    )

    division: Mapped["Division"] = relationship(lazy="joined")
