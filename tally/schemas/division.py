"""Division and branding schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from tally.schemas.common import CamelModel, HexColor


class DivisionCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    logo_url: str | None = Field(default=None, max_length=500)
    primary_color: HexColor | None = None
    secondary_color: HexColor | None = None
    is_active: bool = True


class DivisionUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    logo_url: str | None = Field(default=None, max_length=500)
    primary_color: HexColor | None = None
    secondary_color: HexColor | None = None
    is_active: bool | None = None


class DivisionOut(CamelModel):
    id: str
    name: str
    description: str | None = None
    logo_url: str | None = None
    primary_color: str | None = None
    secondary_color: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class BrandingIn(CamelModel):
    organization_name: str | None = Field(default=None, max_length=255)
    logo_url: str | None = Field(default=None, max_length=500)
    favicon_url: str | None = Field(default=None, max_length=500)
    primary_color: HexColor | None = None
    secondary_color: HexColor | None = None
    accent_color: HexColor | None = None
    font_family: str | None = Field(default=None, max_length=255)
    custom_css: str | None = None
    show_powered_by: bool = True


class BrandingOut(BrandingIn):
    id: str
    updated_at: datetime


class EffectiveBrandingOut(CamelModel):
    primary_color: str
    secondary_color: str
    accent_color: str
    logo_url: str | None = None
    favicon_url: str | None = None
    organization_name: str
    font_family: str | None = None
    custom_css: str | None = None
    show_powered_by: bool
    division_id: str | None = None
    css_variables: dict[str, str] = Field(default_factory=dict)
