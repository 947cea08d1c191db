"""SQLAlchemy ORM model for the global branding settings row."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from tally.db.base import Base
from tally.domain.mixins import _now, new_id


class BrandingSettings(Base):
    __tablename__ = "branding_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    organization_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    favicon_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    primary_color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)
    secondary_color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)
    accent_color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)
    font_family: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    custom_css: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    show_powered_by: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_now,
        onupdate=_now,
        server_default=func.now(),
        nullable=False,
    )
