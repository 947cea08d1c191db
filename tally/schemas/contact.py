"""Contact and reporting schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from tally.schemas.common import CamelModel


class ContactFields(CamelModel):
    first_name: str | None = Field(default=None, max_length=255)
    last_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    company: str | None = Field(default=None, max_length=255)
    job_title: str | None = Field(default=None, max_length=255)
    address: str | None = None
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    zip_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=100)
    notes: str | None = None
    custom_fields: dict[str, Any] | None = None
    category_id: str | None = None
    last_contacted_at: datetime | None = None


class ContactCreate(ContactFields):
    division_id: str


class ContactUpdate(ContactFields):
    pass


class ContactOut(CamelModel):
    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    job_title: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None
    notes: str | None = None
    custom_fields: dict[str, Any] | None = None
    category_id: str | None = None
    last_contacted_at: datetime | None = None
    division_id: str | None = None
    upload_id: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class BulkDeleteRequest(CamelModel):
    ids: list[str] = Field(min_length=1, max_length=1000)


class BulkDeleteResult(CamelModel):
    deleted: int


class CategoryCount(CamelModel):
    category_id: str | None = None
    category_name: str
    count: int


class ContactStats(CamelModel):
    total: int
    with_email: int
    with_phone: int
    with_address: int
    with_company: int
    with_custom_fields: int
    email_percentage: int
    phone_percentage: int
    address_percentage: int
    company_percentage: int
    by_category: list[CategoryCount]


class DivisionStats(CamelModel):
    division_id: str
    division_name: str
    description: str | None = None
    contact_count: int
    email_count: int
    phone_count: int
    address_count: int
    company_count: int
    active_users: int
    recent_uploads: int
    share_percentage: int


class CompanyStats(CamelModel):
    total_contacts: int
    total_divisions: int
    total_active_users: int
    total_uploads: int
    total_emails: int
    total_phones: int
    total_addresses: int
    division_stats: list[DivisionStats]
