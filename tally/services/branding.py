"""Global branding settings and per-division effective branding."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from tally.domain.branding import BrandingSettings
from tally.domain.division import Division
from tally.repositories.division import BrandingRepository, DivisionRepository
from tally.schemas.division import BrandingIn, BrandingOut
from tally.services.access import AccessScope
from tally.services.audit import AuditService, RequestMeta, snapshot

DEFAULT_PRIMARY_COLOR = "#1976D2"
DEFAULT_SECONDARY_COLOR = "#424242"
DEFAULT_ACCENT_COLOR = "#FF9800"
DEFAULT_ORGANIZATION_NAME = "Tally by JBLabs"


@dataclass
class EffectiveBranding:
    primary_color: str
    secondary_color: str
    accent_color: str
    organization_name: str
    logo_url: str | None = None
    favicon_url: str | None = None
    font_family: str | None = None
    custom_css: str | None = None
    show_powered_by: bool = True
    division_id: str | None = None
    css_variables: dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return asdict(self)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def hex_to_hsl(hex_color: str) -> tuple[int, int, int]:
    """`#RRGGBB` -> (hue degrees, saturation %, lightness %), each rounded half-up."""
    r = int(hex_color[1:3], 16) / 255
    g = int(hex_color[3:5], 16) / 255
    b = int(hex_color[5:7], 16) / 255

    high, low = max(r, g, b), min(r, g, b)
    lightness = (high + low) / 2
    if high == low:
        hue = saturation = 0.0
    else:
        d = high - low
        saturation = d / (2 - high - low) if lightness > 0.5 else d / (high + low)
        if high == r:
            hue = (g - b) / d + (6 if g < b else 0)
        elif high == g:
            hue = (b - r) / d + 2
        else:
            hue = (r - g) / d + 4
        hue /= 6

    return (
        _round_half_up(hue * 360),
        _round_half_up(saturation * 100),
        _round_half_up(lightness * 100),
    )


def css_hsl(hex_color: str) -> str:
    hue, saturation, lightness = hex_to_hsl(hex_color)
    return f"hsl({hue}, {saturation}%, {lightness}%)"


def resolve_branding(
    division: Division | None, branding: BrandingSettings | None
) -> EffectiveBranding:
    """Division overrides global settings, which override the built-in defaults.

    The accent color has no division override.
    """
    primary = (
        (division and division.primary_color)
        or (branding and branding.primary_color)
        or DEFAULT_PRIMARY_COLOR
    )
    secondary = (
        (division and division.secondary_color)
        or (branding and branding.secondary_color)
        or DEFAULT_SECONDARY_COLOR
    )
    accent = (branding and branding.accent_color) or DEFAULT_ACCENT_COLOR
    logo = (division and division.logo_url) or (branding and branding.logo_url) or None
    name = (
        (division and division.name)
        or (branding and branding.organization_name)
        or DEFAULT_ORGANIZATION_NAME
    )

    return EffectiveBranding(
        primary_color=primary,
        secondary_color=secondary,
        accent_color=accent,
        organization_name=name,
        logo_url=logo,
        favicon_url=branding.favicon_url if branding else None,
        font_family=branding.font_family if branding else None,
        custom_css=branding.custom_css if branding else None,
        show_powered_by=branding.show_powered_by if branding else True,
        division_id=division.id if division else None,
        css_variables={
            "--primary": css_hsl(primary),
            "--secondary": css_hsl(secondary),
            "--accent": css_hsl(accent),
        },
    )


class BrandingService:
    def __init__(self, session: AsyncSession):
        self._repo = BrandingRepository(session)
        self._divisions = DivisionRepository(session)
        self._audit = AuditService(session)

    async def get_settings(self) -> BrandingSettings | None:
        return await self._repo.get_current()

    async def save_settings(
        self, scope: AccessScope, data: BrandingIn, meta: RequestMeta
    ) -> BrandingSettings:
        current = await self._repo.get_current()
        if current is None:
            before = None
            current = await self._repo.create(**data.model_dump())
        else:
            before = snapshot(BrandingOut, current)
            current = await self._repo.update(current, **data.model_dump())
        await self._audit.record(
            scope.user_id,
            "branding_updated",
            entity_type="branding",
            entity_id=current.id,
            old_values=before,
            new_values=snapshot(BrandingOut, current),
            meta=meta,
        )
        return current

    async def effective(self, scope: AccessScope | None) -> EffectiveBranding:
        division = None
        if scope is not None and scope.selected_division_id:
            if scope.can_access_division(scope.selected_division_id):
                division = await self._divisions.get_by_id(scope.selected_division_id)
        return resolve_branding(division, await self._repo.get_current())
