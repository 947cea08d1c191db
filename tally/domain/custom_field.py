"""SQLAlchemy ORM model for admin-defined custom contact fields.

Definitions never alter the contacts table; values live in Contact.custom_fields.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tally.db.base import Base
from tally.domain.mixins import DivisionMixin, TimestampMixin, new_id

FIELD_TYPES = ("text", "email", "phone", "number", "date", "select", "checkbox")


class CustomFieldDefinition(Base, DivisionMixin, TimestampMixin):
    __tablename__ = "custom_field_definitions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    field_type: Mapped[str] = mapped_column(String(50), nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    default_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    placeholder: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    help_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    validation_rules: Mapped[Optional[Any]] = mapped_column(JSON(none_as_null=True), nullable=True)
    select_options: Mapped[Optional[Any]] = mapped_column(JSON(none_as_null=True), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_global: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
