"""Contact category and custom field definition schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field, model_validator

from tally.schemas.common import CamelModel, HexColor

FieldType = Literal["text", "email", "phone", "number", "date", "select", "checkbox"]


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    color: HexColor | None = None
    division_id: str | None = None


class CategoryUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    color: HexColor | None = None
    is_active: bool | None = None


class CategoryOut(CamelModel):
    id: str
    name: str
    description: str | None = None
    color: str | None = None
    division_id: str | None = None
    is_active: bool
    created_at: datetime


class CustomFieldCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100, pattern=r"^[A-Za-z][A-Za-z0-9_]*$")
    label: str = Field(min_length=1, max_length=255)
    field_type: FieldType
    is_required: bool = False
    default_value: str | None = None
    placeholder: str | None = Field(default=None, max_length=255)
    help_text: str | None = None
    validation_rules: dict[str, Any] | None = None
    select_options: list[str] | None = None
    display_order: int = 0
    division_id: str | None = None
    is_global: bool = False

    @model_validator(mode="after")
    def _check_shape(self) -> "CustomFieldCreate":
        problems = []
        if self.field_type == "select" and not self.select_options:
            problems.append("select fields need at least one option")
        if self.is_global and self.division_id:
            problems.append("a global field cannot belong to a division")
        if not self.is_global and not self.division_id:
            problems.append("choose a division or mark the field as global")
        if problems:
            raise ValueError("; ".join(problems))
        return self


class CustomFieldUpdate(CamelModel):
    label: str | None = Field(default=None, min_length=1, max_length=255)
    field_type: FieldType | None = None
    is_required: bool | None = None
    default_value: str | None = None
    placeholder: str | None = Field(default=None, max_length=255)
    help_text: str | None = None
    validation_rules: dict[str, Any] | None = None
    select_options: list[str] | None = None
    display_order: int | None = None


class CustomFieldOut(CamelModel):
    id: str
    name: str
    label: str
    field_type: str
    is_required: bool
    default_value: str | None = None
    placeholder: str | None = None
    help_text: str | None = None
    validation_rules: dict[str, Any] | None = None
    select_options: list[str] | None = None
    display_order: int
    division_id: str | None = None
    is_global: bool
    is_active: bool
    created_by: str
    created_at: datetime
    updated_at: datetime
