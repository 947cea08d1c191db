"""SQLAlchemy ORM model for uploaded spreadsheet files and their import lifecycle."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from tally.db.base import Base
from tally.domain.mixins import DivisionMixin, _now, new_id

# pending -> processing -> completed | failed
UPLOAD_PENDING = "pending"
UPLOAD_PROCESSING = "processing"
UPLOAD_COMPLETED = "completed"
UPLOAD_FAILED = "failed"


class Upload(Base, DivisionMixin):
    __tablename__ = "uploads"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)  # generated, on disk
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    mime_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), default=UPLOAD_PENDING, nullable=False, index=True
    )
    records_total: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    records_imported: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    records_skipped: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # {source column: canonical field key | "custom:<name>" | ""}
    field_mapping: Mapped[Optional[Any]] = mapped_column(JSON(none_as_null=True), nullable=True)

    uploaded_by: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, server_default=func.now(), nullable=False,
        index=True,
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
