"""Shared Pydantic schema base with camelCase aliases."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

Role = Literal["admin", "uploader", "user", "exco"]

HexColor = Annotated[str, Field(pattern=r"^#[0-9A-Fa-f]{6}$")]

EmailText = Annotated[
    str, Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
]


class CamelModel(BaseModel):
    """All API schemas inherit from this to auto-generate camelCase aliases."""

    model_config = {
        "populate_by_name": True,
        "alias_generator": to_camel,
        "from_attributes": True,
    }


class MessageResponse(CamelModel):
    message: str


class HealthResponse(BaseModel):
    """Health-check response returned by /health."""
    status: str = "ok"
    app: str
    env: str
